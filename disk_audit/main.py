import argparse
import logging
import sys

from azure.identity import AzureCliCredential
from tqdm.contrib.logging import logging_redirect_tqdm

from .config import DEFAULT_DAYS, DEFAULT_OUTPUT_DIR, config_from_args
from .errors import AuthenticationError, ConfigurationError, SubscriptionListingError
from .pipeline import run_audit
from .subscriptions import filter_subscriptions, list_subscriptions

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def get_credential(tenant_id=None):
    if tenant_id:
        return AzureCliCredential(tenant_id=tenant_id)
    return AzureCliCredential()


def build_parser():
    parser = argparse.ArgumentParser(
        prog='disk-audit',
        description='Report Azure managed disk changes and VM attach/detach events to CSV.',
    )
    parser.add_argument('--tenant-id', help='tenant to query (default: $AZURE_TENANT_ID)')
    parser.add_argument('--start-date', help='inclusive start of the window, YYYY-MM-DD (UTC)')
    parser.add_argument('--end-date', help='exclusive end of the window, YYYY-MM-DD (default: now)')
    parser.add_argument('--days', type=int, default=DEFAULT_DAYS,
                        help='window length, counted back from the end date, when --start-date is not given')
    parser.add_argument('--include', action='append', metavar='SUB',
                        help='subscription id or name to include (repeatable, comma separated)')
    parser.add_argument('--exclude', action='append', metavar='SUB',
                        help='subscription id or name to skip (repeatable, comma separated)')
    parser.add_argument('--output', help='path of the disk changes CSV')
    parser.add_argument('--outdir', default=DEFAULT_OUTPUT_DIR)
    parser.add_argument('--no-resource-graph', action='store_true',
                        help='skip Resource Graph backfill and enrichment')
    parser.add_argument('--summary', action='store_true',
                        help='also write per-subscription change counts')
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)-7s %(name)s: %(message)s',
    )
    if not verbose:
        # the SDK logs every HTTP request at INFO
        logging.getLogger('azure').setLevel(logging.WARNING)


def main(argv=None, credential=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_USAGE

    cred = credential or get_credential(config.tenant_id)
    try:
        subs = list_subscriptions(cred, config.tenant_id)
    except (AuthenticationError, SubscriptionListingError) as e:
        logger.error("%s", e)
        return EXIT_FATAL
    logger.info("Found %d subscriptions", len(subs))

    subs = filter_subscriptions(subs, config.include, config.exclude)
    if not subs:
        logger.warning("No subscriptions left after filtering, nothing to do")
        return EXIT_OK

    logger.info(
        "Auditing %d subscriptions from %s to %s",
        len(subs), config.start_date.strftime('%Y-%m-%d'), config.end_date.strftime('%Y-%m-%d %H:%M'),
    )
    with logging_redirect_tqdm():
        result = run_audit(config, cred, subs)

    logger.info("Reports written to %s", ', '.join(result.written))
    return EXIT_OK


def cli():
    sys.exit(main())


if __name__ == '__main__':
    cli()
