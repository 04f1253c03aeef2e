import argparse
import math
import sys

from tabulate import tabulate

from demand_planning.config import config
from demand_planning.db import db
from demand_planning.exceptions import DemandPlanningError
from demand_planning.logging_setup import logger, get_logger
from demand_planning import api

def init_application(db_url=None):
    """Initialize application components."""
    db.initialize(db_url)
    db.test_connection()

    log = logger.app_logger
    log.info("Demand Planning backend initialized")
    log.info(f"Using database: {db.engine.url.render_as_string(hide_password=True)}")

    return True

def setup_database(drop_existing=False):
    """Create the schema, optionally dropping existing tables first."""
    log = get_logger('db_setup')
    if drop_existing:
        log.info("Dropping all existing tables...")
        db.drop_all_tables()
    log.info("Creating database tables...")
    db.create_all_tables()
    log.info("Database tables created successfully.")

def _fmt(value):
    if value is None:
        return '-'
    if isinstance(value, float):
        return 'NaN' if math.isnan(value) else f"{value:,.3f}"
    return value

def bulk_update(args):
    filters = {
        'month_year': args.month_year,
        'product_id': args.product_id,
        'customer_id': args.customer_id
    }
    result = api.apply_bulk_percentage_change(filters, args.percentage, args.description)
    print(result['change_summary'])
    print(f"Records affected: {result['records_affected']}")
    print(f"Forecast aggregate rows: {result['aggregate_rows']}")

def process_forecast(args):
    summary = api.run_forecast_processing()
    rows = [
        [r['product_id'], r['product_name'], r['periods'], _fmt(r['forecast']), _fmt(r['dmd_stdev']),
         _fmt(r['dl']), _fmt(r['eoq']), _fmt(r['ss']), _fmt(r['rop']), 'yes' if r['persisted'] else 'no']
        for r in summary['results']
    ]
    print(tabulate(rows, headers=['Product', 'Name', 'Months', 'Forecast', 'Dmd Stdev',
                                  'DL', 'EOQ', 'SS', 'ROP', 'Saved'], disable_numparse=True))
    print(f"\nProcessed {summary['processed']} products, persisted {summary['persisted']}, "
          f"skipped {summary['skipped']}")

def show_history(args):
    entries = api.get_update_history(args.limit)
    rows = [
        [e['id'], e['created_at'], e['month_year'] or '-', e['product_id'] or '-',
         e['customer_id'] or '-', f"{e['percentage']:+g}%", e['records_affected'], e['description']]
        for e in entries
    ]
    print(tabulate(rows, headers=['ID', 'Created', 'Month', 'Product', 'Customer',
                                  'Change', 'Records', 'Description'], disable_numparse=True))

def show_comparison(args):
    summary = api.compare_with_original()
    print(f"Original total: {_fmt(summary['total_original'])}")
    print(f"Working total:  {_fmt(summary['total_modified'])}")
    print(f"Difference:     {_fmt(summary['difference'])} ({summary['percentage_change']:+.2f}%)")
    print(f"Records changed: {summary['records_changed']} of {summary['records_total']}\n")

    rows = [
        [d['product_id'], d['product_name'], f"{d['month_name']} {d['year']}",
         _fmt(d['original_quantity']), _fmt(d['modified_quantity']), _fmt(d['difference']),
         f"{d['percentage_change']:+.2f}%"]
        for d in summary['product_month_differences']
    ]
    print(tabulate(rows, headers=['Product', 'Name', 'Month', 'Original', 'Working',
                                  'Difference', 'Change'], disable_numparse=True))

def show_summary(args):
    summary = api.get_demand_summary()
    date_range = summary['date_range']
    print(f"Records: {summary['total_records']}")
    print(f"Total quantity: {_fmt(summary['total_quantity'])}")
    print(f"Products: {summary['unique_products']}, customers: {summary['unique_customers']}")
    print(f"Date range: {date_range['start_date'] or '-'} to {date_range['end_date'] or '-'}\n")

    rows = [
        [p['product_id'], p['product_name'], f"{m['month_name']} {m['year']}", _fmt(m['total_quantity'])]
        for p in summary['product_demand_by_month']
        for m in p['monthly_demand']
    ]
    print(tabulate(rows, headers=['Product', 'Name', 'Month', 'Quantity'], disable_numparse=True))

def main(argv=None):
    """Main application entry point."""
    parser = argparse.ArgumentParser(description='Demand Planning backend')

    parser.add_argument('--db-url', type=str, default=None,
                        help='SQLAlchemy database URL (defaults to the DATABASE config section)')
    parser.add_argument('--setup-db', action='store_true',
                        help='Set up the database schema')
    parser.add_argument('--drop-db', action='store_true',
                        help='Drop existing tables before setup')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    bulk_parser = subparsers.add_parser('bulk-update', help='Apply a percentage change to working demand')
    bulk_parser.add_argument('--percentage', type=float, required=True,
                             help='Percentage change, e.g. 10 or -5')
    bulk_parser.add_argument('--description', type=str, required=True,
                             help='Reason for the change')
    bulk_parser.add_argument('--month-year', type=str, help='Restrict to a month (YYYY-MM)')
    bulk_parser.add_argument('--product-id', type=str, help='Restrict to a product')
    bulk_parser.add_argument('--customer-id', type=str, help='Restrict to a customer')
    bulk_parser.set_defaults(handler=bulk_update)

    forecast_parser = subparsers.add_parser('process-forecast',
                                            help='Recompute forecasts and inventory parameters')
    forecast_parser.set_defaults(handler=process_forecast)

    history_parser = subparsers.add_parser('history', help='Show the bulk update history')
    history_parser.add_argument('--limit', type=int,
                                default=config.bulk_update_config['history_limit'],
                                help='Maximum number of entries to show')
    history_parser.set_defaults(handler=show_history)

    compare_parser = subparsers.add_parser('compare', help='Compare working demand with the original')
    compare_parser.set_defaults(handler=show_comparison)

    summary_parser = subparsers.add_parser('summary', help='Summarize working demand')
    summary_parser.set_defaults(handler=show_summary)

    args = parser.parse_args(argv)

    try:
        init_application(args.db_url)

        if args.setup_db:
            setup_database(args.drop_db)
            if not args.command:
                return 0

        if not args.command:
            parser.print_help()
            return 1

        args.handler(args)
    except DemandPlanningError as e:
        get_logger('app').error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0

if __name__ == "__main__":
    sys.exit(main())
