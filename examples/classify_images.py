#!/usr/bin/env python3
"""Classify image files over the streaming session and print the results.

Opens one session, submits every file as a single batch, waits until a
result has arrived for each correlation ID, then closes the session.

Usage:
    # Stream a batch (configuration from CLASSIFIER_* env vars or .env):
    python classify_images.py cat.jpg dog.png

    # Use a pre-issued token instead of the OAuth client-credentials flow:
    python classify_images.py --token "$TOKEN" cat.jpg

    # One unary call per file, no session:
    python classify_images.py --single cat.jpg

    # Show active deployments:
    python classify_images.py --list-deployments

Against the local mock server:
    CLASSIFIER_GRPC_ADDRESS=localhost:50051 CLASSIFIER_GRPC_INSECURE=true \\
    CLASSIFIER_DEPLOYMENT_ID=demo python classify_images.py --token dev cat.jpg
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from classifier_sdk import (
    ClassifierClient,
    ClassifierSdkError,
    ClassifyImageInput,
    ClassifyResponse,
    StaticCredentialProvider,
    load_config,
)

logger = logging.getLogger("classify_images")


def _print_output(output) -> None:
    if output.error is not None:
        print(f"{output.correlation_id}: error {output.error.code} {output.error.message}")
        return
    labels = ", ".join(f"{c.label}={c.weight:.3f}" for c in output.classifications)
    print(f"{output.correlation_id}: {labels}")


async def _stream(client: ClassifierClient, paths: list[Path], timeout: float) -> None:
    pending: set[str] = set()
    done = asyncio.Event()

    def on_data(response: ClassifyResponse) -> None:
        if response.global_error is not None:
            logger.error("Request failed: %s", response.global_error.message)
        for output in response.outputs:
            if output.correlation_id in pending:
                pending.discard(output.correlation_id)
                _print_output(output)
        if not pending:
            done.set()

    client.subscribe("data", on_data)
    client.subscribe("error", lambda exc: logger.error("Stream error: %s", exc))

    await client.open()
    inputs = [ClassifyImageInput(image=path, correlation_id=str(path)) for path in paths]
    pending.update(item.correlation_id for item in inputs)
    await client.submit(inputs)
    try:
        await asyncio.wait_for(done.wait(), timeout)
    except asyncio.TimeoutError:
        logger.error("No result for: %s", ", ".join(sorted(pending)))
    finally:
        await client.close()


async def _run(args: argparse.Namespace) -> int:
    config = load_config()
    credentials = StaticCredentialProvider(args.token) if args.token else None
    client = ClassifierClient(config, credentials=credentials)
    try:
        if args.list_deployments:
            for deployment in await client.list_deployments():
                print(f"{deployment.deployment_id}\tbacklog={deployment.backlog}")
        elif args.single:
            for path in args.images:
                _print_output(await client.submit_single_shot(ClassifyImageInput(image=path)))
        else:
            await _stream(client, args.images, args.timeout)
    except ClassifierSdkError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        await client.aclose()
    return 0


def main() -> None:
    """Parse arguments and run."""
    parser = argparse.ArgumentParser(description="Classify images with classifier-sdk")
    parser.add_argument("images", nargs="*", type=Path, help="Image files to classify.")
    parser.add_argument("--token", default=None, help="Pre-issued bearer token.")
    parser.add_argument("--single", action="store_true", help="Use unary calls.")
    parser.add_argument(
        "--list-deployments",
        action="store_true",
        help="Print active deployments and exit.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Seconds to wait for streamed results (default: 30).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not args.images and not args.list_deployments:
        parser.error("no images given")
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
