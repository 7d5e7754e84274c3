#!/usr/bin/env python3
"""
Dump the schema metadata of a PostgreSQL database.
"""

# This file is part of pg_metadump.

import sys
import logging
from signal import SIGPIPE
from argparse import ArgumentParser, RawDescriptionHelpFormatter

from .config import load_config
from .consts import VERSION
from .dumper import Dumper
from .dbreader import DbReader
from .dumpwriter import DumpWriter
from .dummywriter import DummyWriter
from .exceptions import MetaDumpException, ConfigError

logger = logging.getLogger("metadump")


def main():
    """Run the program, raise exceptions."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s"
    )
    opt = parse_cmdline()
    logger.setLevel(opt.loglevel)

    writer = DummyWriter()
    reader = DbReader(opt.dsn)
    dumper = Dumper(reader=reader, writer=writer)

    # Parse all the config files and look for all the errors.
    # Bail out if there is any error
    confs = [load_config(fn) for fn in opt.config_files]
    if [conf for conf in confs if conf is None]:
        return 1

    for conf in confs:
        dumper.add_config(conf)

    # Plan now. before opening the output file to write.
    reader.load_catalog()
    dumper.plan_dump()

    to_close = []
    try:
        if not opt.test:
            outfile = open_output(opt.outfile, to_close)
            postdata_outfile = None
            if opt.postdata_outfile is not None:
                postdata_outfile = open_output(opt.postdata_outfile, to_close)

            dumper.writer = DumpWriter(
                outfile=outfile, postdata_outfile=postdata_outfile
            )

        dumper.run_dump()
    finally:
        for f in to_close:
            f.close()


def open_output(filename, to_close):
    """
    Open a file for writing the dump; "-" means stdout.

    Opened files are added to *to_close*.
    """
    if filename == "-":
        return sys.stdout

    try:
        f = open(filename, "w", encoding="utf-8")
    except Exception as e:
        raise ConfigError("couldn't open %s for writing: %s" % (filename, e))

    to_close.append(f)
    return f


def script():
    """Run the program and terminate the process."""
    try:
        sys.exit(main())

    except MetaDumpException as e:
        if str(e):
            logger.error("%s", e)
        sys.exit(1)

    except BrokenPipeError as e:
        logger.error("dump interrupted: %s", e)
        # Not entirely correct: might have been ESHUTDOWN
        sys.exit(SIGPIPE + 128)

    except Exception:
        logger.exception("unexpected error")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("user interrupt")
        sys.exit(1)


def parse_cmdline(args=None):
    parser = ArgumentParser(
        description=__doc__, formatter_class=RawDescriptionHelpFormatter
    )

    parser.add_argument("--version", action="version", version="%%(prog)s %s" % VERSION)

    parser.add_argument(
        "config_files",
        nargs="*",
        metavar="config",
        help="yaml file describing what to dump",
    )

    parser.add_argument(
        "--dsn",
        default="",
        help="database connection string [default: %(default)r]",
    )

    parser.add_argument(
        "--outfile",
        "-o",
        default="-",
        help="the file where to save the pre-data dump [default: stdout]",
    )

    parser.add_argument(
        "--postdata-outfile",
        metavar="FILE",
        help="the file where to save the post-data dump"
        " [default: after the pre-data]",
    )

    parser.add_argument(
        "--test",
        action="store_true",
        help="plan the dump and report what would be written",
    )

    g = parser.add_mutually_exclusive_group()
    g.add_argument(
        "-q",
        "--quiet",
        help="talk less",
        dest="loglevel",
        action="store_const",
        const=logging.WARN,
        default=logging.INFO,
    )
    g.add_argument(
        "-v",
        "--verbose",
        help="talk more",
        dest="loglevel",
        action="store_const",
        const=logging.DEBUG,
        default=logging.INFO,
    )

    opt = parser.parse_args(args)

    return opt
