#!/usr/bin/env python3
"""
Write the metadata dump into files.

This file is part of pg_metadump.
"""

import logging
from datetime import datetime, timezone

from .consts import PROJECT_URL, VERSION
from .writer import Writer

logger = logging.getLogger("metadump.dumpwriter")


class DumpWriter(Writer):
    """
    Write the predata section to `outfile`, the postdata to `postdata_outfile`.

    If `postdata_outfile` is not specified the postdata section is written
    after the predata in `outfile`. Errors writing are not handled.
    """

    def __init__(self, outfile, postdata_outfile=None):
        self.outfile = outfile
        self.postdata_outfile = postdata_outfile
        self._start_time = None

    def begin_dump(self):
        self._start_time = now = datetime.now(timezone.utc)
        self._write_header(self.outfile, "pre-data", now)
        if self.postdata_outfile is not None:
            self._write_header(self.postdata_outfile, "post-data", now)

    def end_dump(self):
        now = datetime.now(timezone.utc)
        elapsed = pretty_timedelta(now - self._start_time)
        for f in self._files():
            f.write("\n\n-- Metadata dump finished at %s (%s)\n\n" % (now, elapsed))
            # No highlight please
            f.write("-- vim: set filetype=:\n")

    def write_predata(self, obj, text):
        if not text:
            logger.info("skipping %s %s", obj.kind, obj)
            return
        logger.info("dumping %s %s", obj.kind, obj)
        self.outfile.write(text)

    def write_constraints(self, text):
        logger.info("dumping constraints")
        self.outfile.write(text)

    def write_postdata(self, text):
        logger.info("dumping indexes, rules, triggers")
        if self.postdata_outfile is not None:
            self.postdata_outfile.write(text)
        else:
            self.outfile.write("\n")
            self.outfile.write(text)

    def _write_header(self, f, section, now):
        f.write(
            "-- PostgreSQL %s metadata generated by pg_metadump %s\n"
            % (section, VERSION)
        )
        f.write("-- %s\n\n" % PROJECT_URL)
        f.write("-- Metadata dump started at %s\n\n" % now)
        f.write("SET client_encoding = 'UTF8';\n")
        f.write("SET standard_conforming_strings = on;\n")
        f.write("SET check_function_bodies = false;\n")

    def _files(self):
        yield self.outfile
        if self.postdata_outfile is not None:
            yield self.postdata_outfile


def pretty_timedelta(delta):
    """
    Display a time interval in a human friendly way
    """
    rem, secs = divmod(abs(delta.total_seconds()), 60)
    rem, mins = divmod(rem, 60)
    days, hours = divmod(rem, 24)
    parts = [(days, "d"), (hours, "h"), (mins, "m"), (secs, "s")]
    while parts and parts[0][0] == 0:
        del parts[0]
    if not parts:
        return "0s"
    sign = "-" if delta.total_seconds() < 0 else ""
    return sign + " ".join("%.0f%s" % p for p in parts)
