# atomcache/cli/main.py
import argparse
import sys
import logging
from typing import List, Optional

from Bio.PDB import PDBIO, MMCIFIO

from ..core.context import ApplicationContext
from ..core.logging_config import LoggingManager
from ..error_handlers import handle_exceptions
from ..naming.classifier import NameClassifier


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Resolve structure names to PDB structures')

    # Global options
    parser.add_argument('--config', type=str, help='Path to configuration file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity (can be used multiple times)')
    parser.add_argument('--log-file', type=str,
                        help='Log to file in addition to stderr')
    parser.add_argument('--log-dir', type=str,
                        help='Directory for log files')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    classify_parser = subparsers.add_parser('classify', help='Show how a structure name is interpreted')
    classify_parser.add_argument('name', help='Structure name, e.g. 4hhb.A or d2bq6a1')

    fetch_parser = subparsers.add_parser('fetch', help='Resolve a name and write the structure')
    fetch_parser.add_argument('name', help='Structure name')
    fetch_parser.add_argument('-o', '--output', type=str,
                              help='Output file (default: stdout)')
    fetch_parser.add_argument('--format', choices=('pdb', 'cif'), default='cif',
                              help='Output format')

    ca_parser = subparsers.add_parser('ca', help='List C-alpha atoms of a structure')
    ca_parser.add_argument('name', help='Structure name')

    return parser


def classify_command(args, out) -> int:
    reference = NameClassifier().classify(args.name)
    print(f"kind: {reference.kind.value}", file=out)
    for field, value in vars(reference).items():
        print(f"{field}: {value}", file=out)
    return 0


def fetch_command(args, context: ApplicationContext, out) -> int:
    structure = context.cache.get_structure(args.name)
    if structure is None:
        print(f"Error: No structure found for {args.name}", file=sys.stderr)
        return 1

    writer = PDBIO() if args.format == 'pdb' else MMCIFIO()
    writer.set_structure(structure)
    if args.output:
        writer.save(args.output)
        logging.getLogger("atomcache.cli").info(f"Wrote {args.name} to {args.output}")
    else:
        writer.save(out)
    return 0


def ca_command(args, context: ApplicationContext, out) -> int:
    for atom in context.cache.get_atoms(args.name):
        residue = atom.get_parent()
        chain = residue.get_parent()
        _, seq, icode = residue.id
        x, y, z = atom.coord
        print(f"{chain.id}\t{seq}{icode.strip()}\t{residue.get_resname()}\t{x:.3f}\t{y:.3f}\t{z:.3f}", file=out)
    return 0


@handle_exceptions(exit_on_error=False)
def main(argv: Optional[List[str]] = None, out=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    out = out or sys.stdout

    if not args.command:
        parser.print_help()
        return 1

    context = None if args.command == 'classify' else ApplicationContext(args.config)

    # 0=WARNING, 1=INFO, 2=DEBUG
    log_level = max(logging.DEBUG, logging.WARNING - args.verbose * 10)
    logger = LoggingManager.configure(
        verbose=(log_level == logging.DEBUG),
        log_file=args.log_file,
        log_dir=args.log_dir,
        component="atomcache",
        config=context.config if context else None
    )
    if log_level > logging.DEBUG:
        logging.getLogger().setLevel(log_level)

    if context is None:
        return classify_command(args, out)

    sources = context.config_manager.sources
    logger.debug(f"Configuration loaded from {', '.join(sources) or 'defaults'}")

    with context:
        if args.command == 'fetch':
            return fetch_command(args, context, out)
        if args.command == 'ca':
            return ca_command(args, context, out)

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
