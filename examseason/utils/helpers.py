"""
Helper utilities for the exam season prescriptions analysis.
"""

from typing import Dict, Any, List
import logging
import os
import json
import math
from functools import wraps
import time

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def to_python(value: Any) -> Any:
    """
    Convert numpy/pandas scalars to plain Python, mapping NaN to None.

    Args:
        value: Scalar value

    Returns:
        JSON-serializable value
    """
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    if value is pd.NA or value is pd.NaT:
        return None
    return value


def dataframe_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a DataFrame to JSON-ready records with missing values as None.

    Args:
        df: DataFrame to convert

    Returns:
        List of row dictionaries
    """
    return [
        {str(column): to_python(value) for column, value in row.items()}
        for row in df.to_dict(orient='records')
    ]


def save_json_file(data: Dict[str, Any], file_path: str) -> None:
    """
    Save data to JSON file with error handling.

    Args:
        data: Data to save
        file_path: Path to save JSON file
    """
    try:
        os.makedirs(os.path.dirname(str(file_path)) or '.', exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)
        logger.info(f"JSON file saved successfully: {file_path}")
    except Exception as e:
        logger.error(f"Error saving JSON file {file_path}: {e}")
        raise


def ensure_directory_exists(directory: str) -> None:
    """
    Ensure directory exists, create if it doesn't.

    Args:
        directory: Directory path to ensure exists
    """
    try:
        os.makedirs(directory, exist_ok=True)
        logger.debug(f"Directory ensured: {directory}")
    except Exception as e:
        logger.error(f"Error creating directory {directory}: {e}")
        raise


def timing_decorator(func):
    """
    Decorator to measure function execution time.

    Args:
        func: Function to decorate

    Returns:
        Decorated function
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
            execution_time = time.time() - start_time
            logger.info(f"Function {func.__name__} executed in {execution_time:.4f} seconds")
            return result
        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(f"Function {func.__name__} failed after {execution_time:.4f} seconds: {e}")
            raise
    return wrapper
