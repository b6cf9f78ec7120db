#!/usr/bin/env python3
"""
bucketline command line

Thin wrapper over ObjectStoreClient for manual checks against a bucket.

Usage:
    python -m bucketline put media folder/pic.jpg ./pic.jpg --acl private
    python -m bucketline put-many media ./a.jpg ./b.jpg --prefix folder/
    python -m bucketline get media folder/pic.jpg -o ./pic.jpg
    python -m bucketline delete media folder/a.jpg folder/b.jpg
    python -m bucketline url media folder/pic.jpg

    # Credentials, region and limits come from the environment
    BUCKETLINE_REGION=eu-west-1 BUCKETLINE_UPLOAD_CONCURRENCY=8 python -m bucketline ...
"""

from __future__ import annotations

import argparse
import asyncio
import inspect
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import List, Optional, Sequence

from bucketline.core.config import ClientConfig
from bucketline.core.types import AccessPolicy, DEFAULT_ACCESS_POLICY, UploadItem
from bucketline.observability.logging import LogLevel, setup_logging
from bucketline.storage.client import ObjectStoreClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bucketline",
        description="Upload, download and delete objects in S3-compatible storage.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log requests as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    acl_choices = [p.value for p in AccessPolicy]

    put = sub.add_parser("put", help="Upload one file")
    put.add_argument("bucket")
    put.add_argument("key")
    put.add_argument("file", type=Path)
    put.add_argument("--acl", choices=acl_choices, default=DEFAULT_ACCESS_POLICY.value)

    put_many = sub.add_parser("put-many", help="Upload files as one batch")
    put_many.add_argument("bucket")
    put_many.add_argument("files", type=Path, nargs="+")
    put_many.add_argument("--prefix", default="", help="Key prefix, e.g. folder/")
    put_many.add_argument("--acl", choices=acl_choices, default=DEFAULT_ACCESS_POLICY.value)

    get = sub.add_parser("get", help="Download one object")
    get.add_argument("bucket")
    get.add_argument("key")
    get.add_argument("-o", "--output", type=Path, help="Destination file (default: stdout)")

    delete = sub.add_parser("delete", help="Delete one or more objects")
    delete.add_argument("bucket")
    delete.add_argument("keys", nargs="+")

    url = sub.add_parser("url", help="Print the public URL of an object")
    url.add_argument("bucket")
    url.add_argument("key")

    return parser


async def _put(client: ObjectStoreClient, args: argparse.Namespace) -> int:
    policy = AccessPolicy(args.acl)
    with args.file.open("rb") as stream:
        result = await client.add(args.bucket, args.key, stream, policy)
    if result.is_err():
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(result.unwrap())
    return 0


async def _put_many(client: ObjectStoreClient, args: argparse.Namespace) -> int:
    policy = AccessPolicy(args.acl)
    with ExitStack() as stack:
        items = [
            UploadItem(key=f"{args.prefix}{path.name}", stream=stack.enter_context(path.open("rb")))
            for path in args.files
        ]
        outcomes = await client.add_batch(args.bucket, items, policy)

    exit_code = 0
    for outcome in outcomes:
        if outcome.is_ok():
            print(outcome.unwrap())
        else:
            print(f"Error: {outcome.error}", file=sys.stderr)
            exit_code = 1
    return exit_code


async def _read_body(body) -> bytes:
    # aiobotocore bodies read asynchronously, in-memory ones synchronously
    try:
        data = body.read()
        if inspect.isawaitable(data):
            data = await data
    finally:
        body.close()
    return data


async def _get(client: ObjectStoreClient, args: argparse.Namespace) -> int:
    result = await client.get(args.bucket, args.key)
    if result.is_err():
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    data = await _read_body(result.unwrap())

    if args.output:
        args.output.write_bytes(data)
    else:
        sys.stdout.buffer.write(data)
    return 0


async def _delete(client: ObjectStoreClient, args: argparse.Namespace) -> int:
    if len(args.keys) == 1:
        result = await client.delete(args.bucket, args.keys[0])
    else:
        result = await client.delete_many(args.bucket, args.keys)
    if result.is_err():
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    return 0


_COMMANDS = {
    "put": _put,
    "put-many": _put_many,
    "get": _get,
    "delete": _delete,
}


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(LogLevel.INFO if args.verbose else LogLevel.WARNING)

    config_result = ClientConfig.from_env()
    if config_result.is_err():
        print(f"Configuration error: {config_result.error}", file=sys.stderr)
        return 1
    config = config_result.unwrap()

    validation = config.validate()
    if validation.is_err():
        print(f"Validation error: {validation.error}", file=sys.stderr)
        return 1

    if args.command == "url":
        print(ObjectStoreClient(config).get_url_path(args.bucket, args.key))
        return 0

    async with ObjectStoreClient(config) as client:
        return await _COMMANDS[args.command](client, args)


def run(argv: Optional[List[str]] = None) -> None:
    """Synchronous entry point."""
    try:
        sys.exit(asyncio.run(main(argv)))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
