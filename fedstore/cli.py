#!/usr/bin/env python3
"""
fedstore CLI

Operator commands against an in-memory core:
  fedstore owns <iri>              - Classify an identifier as local or federated
  fedstore new-id <type>           - Mint an identifier for a document type
  fedstore actor <username>        - Provision an actor and print its JSON-LD
  fedstore page <username>         - Provision an actor and print its first outbox page

Usage:
  fedstore [--config <file>] [--hostname <host>] [-v] <command> ...
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .config import ENV_PREFIX, default_config, load_config
from .database import Database
from .errors import FedstoreError


def build_database(args) -> Database:
    """Create the core from --config / --hostname."""
    if args.config or args.hostname or ENV_PREFIX + "HOSTNAME" in os.environ:
        config = load_config(args.config, hostname=args.hostname)
    else:
        config = default_config()
    return Database(config)


def cmd_owns(args):
    """Classify an identifier."""
    db = build_database(args)
    print("local" if db.owns(args.iri) else "federated")


def cmd_new_id(args):
    """Mint an identifier."""
    db = build_database(args)
    print(db.new_id(args.type))


def cmd_actor(args):
    """Provision an actor and print it."""
    db = build_database(args)
    actor, _ = db.provision_actor(args.username, args.name, args.actor_type)
    print(json.dumps(actor.to_activitypub(), indent=2))


def cmd_page(args):
    """Provision an actor and print a page of its (empty) outbox."""
    db = build_database(args)
    actor, _ = db.provision_actor(args.username)
    page = db.collections.get_page(actor.outbox, offset=args.offset, limit=args.limit)
    print(json.dumps(page.to_activitypub(), indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="fedstore",
        description="Storage and concurrency core for a federated social server",
    )
    parser.add_argument("--config", "-c", help="YAML config file")
    parser.add_argument("--hostname", help="Hostname this server answers for")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    owns_parser = subparsers.add_parser("owns", help="Classify an identifier")
    owns_parser.add_argument("iri", help="Identifier to classify")
    owns_parser.set_defaults(func=cmd_owns)

    new_id_parser = subparsers.add_parser("new-id", help="Mint an identifier")
    new_id_parser.add_argument("type", help="ActivityStreams type (Note, Create, Person, ...)")
    new_id_parser.set_defaults(func=cmd_new_id)

    actor_parser = subparsers.add_parser("actor", help="Provision an actor")
    actor_parser.add_argument("username")
    actor_parser.add_argument("--name", help="Display name")
    actor_parser.add_argument("--actor-type", default="Person", help="Actor type")
    actor_parser.set_defaults(func=cmd_actor)

    page_parser = subparsers.add_parser("page", help="Print an actor's outbox page")
    page_parser.add_argument("username")
    page_parser.add_argument("--offset", type=int, default=0)
    page_parser.add_argument("--limit", type=int)
    page_parser.set_defaults(func=cmd_page)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except (FedstoreError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
