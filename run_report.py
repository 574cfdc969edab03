import logging

from src.rcm_dashboard.pipeline import run_report


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    summary = run_report()
    print("Report complete. KPI values:")
    print(f"rows: {summary['rows']}")
    for key, value in summary["metrics"].items():
        print(f"{key}: {value['value']}")
