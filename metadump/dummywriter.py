#!/usr/bin/env python3
"""
Pretend to write a dump

This file is part of pg_metadump.
"""

import logging

from .writer import Writer

logger = logging.getLogger("metadump.dummywriter")


class DummyWriter(Writer):
    def begin_dump(self):
        logger.debug("start of dump")

    def end_dump(self):
        logger.debug("end of dump")

    def write_predata(self, obj, text):
        if text:
            logger.info("would dump %s %s", obj.kind, obj)
        else:
            logger.info("would skip %s %s", obj.kind, obj)

    def write_constraints(self, text):
        logger.info("would dump constraints")

    def write_postdata(self, text):
        logger.info("would dump indexes, rules, triggers")
