"""Command line tools for dbspace inventory and maintenance."""

import argparse
import json
import logging
import sys

from .config import base_config
from .lifecycle.operations import AddChunkRequest, CreateDbspaceRequest, OperationResult
from .manager import DbspaceManager
from .utils.errors import handle_cli_errors

logger = logging.getLogger(__name__)


def setup_logging():
    """Configure logging with consistent format."""
    logging.basicConfig(
        level=base_config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _add_dry_run(parser):
    parser.add_argument('-X', dest='dry_run', action='store_true',
                        help='Show the commands without running them')


def build_parser():
    """Parse command line arguments for all dbspace tools."""
    parser = argparse.ArgumentParser(description='Informix dbspace tools')
    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    spaces_parser = subparsers.add_parser('spaces', help='List dbspaces as JSON records')
    spaces_parser.add_argument('names', nargs='*', help='Limit the listing to these dbspaces')
    spaces_parser.add_argument('--chunks', action='store_true', help='Include chunk records')
    spaces_parser.add_argument('--logs', action='store_true',
                               help='Include dbspaces holding physical or logical logs')
    spaces_parser.add_argument('--filesystems', action='store_true',
                               help='Include filesystem usage of the raw files')

    new_parser = subparsers.add_parser('new-dbspace', help='Create a dbspace with its first chunk')
    new_parser.add_argument('-d', dest='dbspace', required=True, help='New dbspace name')
    new_parser.add_argument('-p', dest='path', help='Top directory for the raw file')
    new_parser.add_argument('-s', dest='size', type=int, help='Chunk size in KB')
    mirror_group = new_parser.add_mutually_exclusive_group()
    mirror_group.add_argument('-M', dest='mirror', action='store_true',
                              help='Mirror into the default mirror directory')
    mirror_group.add_argument('-m', dest='mirror_path', help='Mirror into this top directory')
    new_parser.add_argument('-k', dest='page_size', type=int, help='Page size in KB')
    new_parser.add_argument('-t', dest='temp', action='store_true', help='Temporary space')
    new_parser.add_argument('-B', dest='blob', action='store_true', help='Blob space')
    new_parser.add_argument('-g', dest='blob_multiple', type=int,
                            help='Blob page size as a multiple of the data page size')
    new_parser.add_argument('-S', dest='smart_blob', action='store_true', help='Smart blob space')
    _add_dry_run(new_parser)

    add_parser = subparsers.add_parser('add-chunk', help='Add chunks to a dbspace')
    add_parser.add_argument('-d', dest='dbspace', required=True, help='Existing dbspace name')
    add_parser.add_argument('-p', dest='path', help='Top directory or existing raw file')
    add_parser.add_argument('-m', dest='mirror_path', help='Top directory for mirror raw files')
    add_parser.add_argument('-c', dest='count', type=int, default=1, help='Number of chunks')
    add_parser.add_argument('-s', dest='size', type=int, help='Chunk size in KB')
    _add_dry_run(add_parser)

    drop_chunk_parser = subparsers.add_parser('drop-chunk', help='Drop one chunk of a dbspace')
    drop_chunk_parser.add_argument('-d', dest='dbspace', required=True, help='DBspace name')
    drop_chunk_parser.add_argument('-n', dest='order', type=int, required=True,
                                   help='Chunk position within the dbspace (2 or more)')
    _add_dry_run(drop_chunk_parser)

    drop_dbs_parser = subparsers.add_parser('drop-dbspace', help='Drop a dbspace and all its chunks')
    drop_dbs_parser.add_argument('-d', dest='dbspace', required=True, help='DBspace name')
    _add_dry_run(drop_dbs_parser)

    subparsers.add_parser('dup-spaces', help='Print commands that would recreate all dbspaces')
    return parser


def report_result(result: OperationResult) -> int:
    for action in result.actions:
        print(action)
    print(result.summary())
    return 0 if result.succeeded else 1


@handle_cli_errors
def run_command(args, manager: DbspaceManager) -> int:
    if args.command == 'spaces':
        records = manager.space_records(args.names, chunks=args.chunks, logs=args.logs,
                                        filesystems=args.filesystems)
        print(json.dumps(records, indent=2, default=str))
        return 0

    if args.command == 'dup-spaces':
        for line in manager.rebuild_script():
            print(line)
        return 0

    if args.command == 'new-dbspace':
        request = CreateDbspaceRequest(
            name=args.dbspace, path=args.path, size_kb=args.size,
            mirror=args.mirror, mirror_path=args.mirror_path,
            page_size_kb=args.page_size, temp=args.temp, blob=args.blob,
            blob_multiple=args.blob_multiple, smart_blob=args.smart_blob,
        )
        return report_result(manager.create_dbspace(request, dry_run=args.dry_run))

    if args.command == 'add-chunk':
        request = AddChunkRequest(name=args.dbspace, path=args.path, mirror_path=args.mirror_path,
                                  count=args.count, size_kb=args.size)
        return report_result(manager.add_chunk(request, dry_run=args.dry_run))

    if args.command == 'drop-chunk':
        return report_result(manager.drop_chunk(args.dbspace, args.order, dry_run=args.dry_run))

    if args.command == 'drop-dbspace':
        return report_result(manager.drop_dbspace(args.dbspace, dry_run=args.dry_run))

    logger.error("No command specified. Use --help for usage information.")
    return 1


def main(argv=None) -> int:
    """Main entry point for the dbspace tools."""
    setup_logging()
    args = build_parser().parse_args(argv)
    if args.command is None:
        logger.error("No command specified. Use --help for usage information.")
        return 1
    return run_command(args, DbspaceManager())


if __name__ == '__main__':
    sys.exit(main())
