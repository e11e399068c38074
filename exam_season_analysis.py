"""
Exam Season Prescribing Analysis Script
Compares per-capita antidepressant prescribing between exam and non-exam
periods across Scottish health boards
"""
import argparse
import logging
import sys

from examseason.config import config
from examseason.reporting.charts import save_all_charts
from examseason.reporting.tables import (
    format_comparison_table,
    format_diagnostics_table,
    format_drug_table,
    write_reports,
)
from examseason.services import AnalysisService
from examseason.utils.error_handlers import AnalysisError


def _fmt_stat(value, spec='.4f'):
    return 'n/a' if value is None else format(value, spec)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--config', default='development', choices=sorted(config))
    parser.add_argument('--no-charts', action='store_true', help='Skip chart rendering')
    args = parser.parse_args(argv)

    cfg = config[args.config]
    logging.basicConfig(level=cfg.LOG_LEVEL, format=cfg.LOG_FORMAT)
    cfg.ensure_directories()

    print("=" * 80)
    print("EXAM SEASON ANTIDEPRESSANT PRESCRIBING ANALYSIS")
    print("=" * 80)

    service = AnalysisService(cfg)
    try:
        result = service.run()
    except AnalysisError as e:
        print(f"❌ Analysis aborted: {e.message}")
        if e.details:
            print(f"   Details: {e.details}")
        return 1

    print(f"Prescription events analysed: {len(result.events):,}")
    print(f"Health boards compared: {len(result.comparison)}")

    print("\n1. PER-CAPITA RATE BY HEALTH BOARD")
    print(format_comparison_table(result.comparison))

    print("\n2. CHANGE BY DRUG")
    print(format_drug_table(result.drug_comparison))

    summary = result.summary
    print("\n3. SUMMARY STATISTICS")
    print(f"Mean change: {_fmt_stat(summary['mean_change_percent'], '+.2f')}%")
    print(f"Boards with higher exam-season rate: {summary['boards_increased']} of {summary['boards_with_change']}")
    print(f"Paired t-test: t={_fmt_stat(summary['paired_t_statistic'])}, p={_fmt_stat(summary['paired_p_value'])}")
    print(f"Young adult share vs change: r={_fmt_stat(summary['young_adult_correlation'])}, "
          f"p={_fmt_stat(summary['young_adult_p_value'])}")

    print("\n4. DROPPED DATA")
    print(format_diagnostics_table(result.diagnostics))

    outputs = write_reports(result, cfg.REPORTS_DIR)
    print(f"\n✅ Saved {len(outputs)} report files to {cfg.REPORTS_DIR}")

    if not args.no_charts:
        charts = save_all_charts(result, cfg.FIGURES_DIR)
        print(f"✅ Saved {len(charts)} charts to {cfg.FIGURES_DIR}")

    print("\n" + "=" * 80)
    print("EXAM SEASON ANALYSIS COMPLETED")
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
