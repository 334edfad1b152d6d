import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from oggscope.core import logger
from oggscope.core.config import Config, load_config
from oggscope.services.inspect.bitstreams import check_page_order, classify_bitstreams, group_by_serial, select_bitstreams
from oggscope.services.inspect.codec import CodecKind
from oggscope.services.inspect.errors import OggInspectError
from oggscope.services.inspect.packets import read_packets
from oggscope.services.inspect.scanner import InvalidPagePolicy, PageScanner, ScanResult, scan_file

EXIT_OK = 0
EXIT_SCAN_FAILED = 1
EXIT_USAGE = 2
EXIT_IO_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oggscope",
        description="List the pages of an Ogg file and identify its logical bitstreams.",
        epilog="exit status: 0 on success, 1 when the scan stopped early (the pages found so far are still "
               "listed), 2 on usage or configuration errors, 3 when the file cannot be read.",
    )
    parser.add_argument("file", nargs="?", type=Path, help="Ogg file to inspect (default: $OGGSCOPE_FILE)")
    parser.add_argument(
        "--codec",
        choices=[kind.value for kind in CodecKind if kind != CodecKind.UNKNOWN],
        help="codec kind to select among the logical bitstreams",
    )
    parser.add_argument(
        "--on-invalid-page",
        choices=[policy.value for policy in InvalidPagePolicy],
        help="what to do when a page does not start with the capture pattern",
    )
    parser.add_argument("--packets", action="store_true", help="reassemble packets and classify every bitstream")
    parser.add_argument("--log-level", type=str.upper, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-json", action="store_true", default=None, help="log as JSON lines")
    return parser


def print_pages(result: ScanResult, out: TextIO) -> None:
    for page in result.pages:
        out.write(f"{page.offset:>10}  {page.header.display_text()}\n")
    out.write(f"{len(result.pages)} pages, {result.total_length} bytes\n")
    if result.invalid_page_offsets:
        offsets = ", ".join(str(offset) for offset in result.invalid_page_offsets)
        out.write(f"invalid pages at offsets: {offsets} ({result.skipped_bytes} bytes skipped)\n")


def print_bitstreams(result: ScanResult, config: Config, out: TextIO) -> None:
    with open(result.path, 'rb') as f:
        scanner = PageScanner(f, total_length=result.total_length)
        bitstreams = group_by_serial(read_packets(scanner, result.pages))

    for serial, codec in classify_bitstreams(bitstreams).items():
        out.write(f"stream {serial:08x}: {codec.value}, {len(bitstreams[serial])} packets\n")

    selected = select_bitstreams(bitstreams, config.TARGET_CODEC)
    if not selected:
        out.write(f"no {config.TARGET_CODEC.value} bitstream\n")
    for serial in selected:
        out.write(f"selected {config.TARGET_CODEC.value} stream {serial:08x}\n")


def run(config: Config, out: Optional[TextIO] = None, with_packets: bool = False) -> int:
    log = logger.get_logger()
    out = out or sys.stdout
    if config.FILE_PATH is None:
        log.error("No input file given.")
        return EXIT_USAGE

    try:
        result = scan_file(config.FILE_PATH, config.INVALID_PAGE_POLICY)
    except OSError as e:
        log.error(f"Cannot read {config.FILE_PATH}: {e}")
        return EXIT_IO_ERROR

    print_pages(result, out)
    if not result.ok:
        out.write(f"error: {result.error}\n")
        return EXIT_SCAN_FAILED

    check_page_order(result.pages)

    if with_packets:
        try:
            print_bitstreams(result, config, out)
        except OSError as e:
            log.error(f"Cannot read {config.FILE_PATH}: {e}")
            return EXIT_IO_ERROR
        except OggInspectError as e:
            out.write(f"error: {e}\n")
            return EXIT_SCAN_FAILED
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(
            FILE_PATH=args.file,
            TARGET_CODEC=CodecKind.from_name(args.codec) if args.codec else None,
            INVALID_PAGE_POLICY=InvalidPagePolicy(args.on_invalid_page) if args.on_invalid_page else None,
            LOG_LEVEL=args.log_level,
            LOG_JSON=args.log_json,
        )
    except (TypeError, ValueError) as e:
        logging.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    logger.setup_logging(config.LOG_LEVEL, config.LOG_JSON, config.LOGGING_CONFIG)
    return run(config, with_packets=args.packets or args.codec is not None)


if __name__ == "__main__":
    sys.exit(main())
