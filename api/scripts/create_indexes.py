#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Create the license application indexes.

Run once per environment before serving traffic: issuing license numbers
depends on the unique partial index over ``licenseDetails.licenseNumber``.

    python api/scripts/create_indexes.py [--uri URI] [--database NAME]
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.mongodb import MongoDBService  # noqa: E402

logger = logging.getLogger("create_indexes")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create license application indexes")
    parser.add_argument("--uri", default=None, help="MongoDB URI (defaults to MONGODB_URI)")
    parser.add_argument("--database", default=None, help="Database name (defaults to MONGODB_DATABASE)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    mongodb_service = MongoDBService(args.uri, args.database)

    try:
        health = mongodb_service.health_check()
        if health["status"] != "healthy":
            logger.error("Cannot reach MongoDB", extra={"health": health})
            return 1

        mongodb_service.create_indexes()
        logger.info("Indexes ready", extra={"database": health["database"]})
        return 0
    finally:
        mongodb_service.close_connection()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    sys.exit(main())
