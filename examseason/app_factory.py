"""
Flask application factory for the exam season prescriptions report API.

This module creates and configures the Flask application with all necessary
components including blueprints, error handlers, logging, the analysis
service and CLI commands.
"""

import os
import logging
from typing import Any, Dict, Optional

import click
from flask import Flask
from flask_cors import CORS

from .config import config as config_mapping, DevelopmentConfig
from .middleware import register_middleware
from .pipeline.periods import classify, season_of
from .reporting.charts import save_all_charts
from .reporting.tables import format_comparison_table, format_diagnostics_table, write_reports
from .routes import create_blueprints
from .services import AnalysisService
from .utils.error_handlers import register_error_handlers
from .utils.responses import success_response
from .utils.validators import validate_period_stamp


def create_app(config_name: str = None, overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name ('development', 'production', 'testing')
        overrides: Config values applied after the named configuration

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    config_class = config_mapping.get(config_name.lower(), DevelopmentConfig)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    # Setup logging
    setup_logging(app)

    CORS(app, resources={
        r"/api/*": {
            "origins": ["*"],
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    # Initialize services
    analysis_service = AnalysisService(app.config)
    app.extensions['analysis_service'] = analysis_service

    # Register blueprints with appropriate URL prefixes
    for blueprint in create_blueprints(analysis_service):
        if blueprint.name == 'report':
            app.register_blueprint(blueprint, url_prefix='/api/report')
        elif blueprint.name == 'periods':
            app.register_blueprint(blueprint, url_prefix='/api/periods')
        else:
            app.register_blueprint(blueprint)

    # Register error handlers
    register_error_handlers(app)

    # Register middleware
    register_middleware(app)

    # Register CLI commands
    register_cli_commands(app)

    # Add application info
    @app.route('/info')
    def app_info():
        """Application information endpoint."""
        info = {
            "name": app.config.get('API_TITLE'),
            "version": app.config.get('API_VERSION'),
            "description": app.config.get('API_DESCRIPTION'),
            "environment": config_name,
            "debug": app.debug
        }
        return success_response(info, "Application information retrieved")

    # Log startup information
    logger = logging.getLogger(__name__)
    logger.info(f"Exam season report API started in {config_name} mode")
    logger.info(f"Debug mode: {app.debug}")
    logger.info(f"Exam prescriptions: {app.config.get('EXAM_PRESCRIPTIONS_DIR')}")
    logger.info(f"Non-exam prescriptions: {app.config.get('NON_EXAM_PRESCRIPTIONS_DIR')}")

    return app


def setup_logging(app: Flask) -> None:
    """
    Setup application logging.

    Args:
        app: Flask application instance
    """
    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    log_format = app.config.get('LOG_FORMAT',
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # File and console handlers, skipped under tests
    if not app.config.get('TESTING', False):
        log_dir = str(app.config.get('LOG_DIR', 'logs'))
        os.makedirs(log_dir, exist_ok=True)

        log_file = os.path.join(log_dir, 'app.log')
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(log_format))

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

    app.logger.setLevel(log_level)

    # Suppress verbose loggers outside debug
    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('matplotlib').setLevel(logging.WARNING)


def register_cli_commands(app: Flask) -> None:
    """
    Register CLI commands for the application.

    Args:
        app: Flask application instance
    """

    @app.cli.command('build-report')
    @click.option('--charts/--no-charts', default=True, help='Render chart figures')
    def build_report(charts):
        """Run the analysis and write reports (and charts)."""
        service = app.extensions['analysis_service']
        result = service.run()
        click.echo(format_comparison_table(result.comparison))
        click.echo(format_diagnostics_table(result.diagnostics))
        for name, path in write_reports(result, app.config['REPORTS_DIR']).items():
            click.echo(f"{name}: {path}")
        if charts:
            for name, path in save_all_charts(result, app.config['FIGURES_DIR']).items():
                click.echo(f"{name}: {path}")

    @app.cli.command('classify-month')
    @click.argument('stamp')
    def classify_month(stamp):
        """Print the academic period and season of a YYYYMM stamp."""
        parsed = validate_period_stamp(stamp)
        period = classify(parsed['month'], app.extensions['analysis_service'].settings.calendar)
        season = season_of(period)
        click.echo(f"{stamp}: {period.value} ({season.value if season else 'excluded'})")
