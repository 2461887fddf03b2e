import argparse
import asyncio
import json
import sys

from hardfetch.errors import ClientError, HardFetchError
from hardfetch.http.client.auth import ApiKeyAuth, BasicAuth, BearerAuth
from hardfetch.http.client.client import HttpClient
from hardfetch.http.client.request import METHODS, RequestSpec
from hardfetch.settings import CLIENT_SETTINGS


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, val = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got {value!r}")
    return name.strip(), val.strip()


def _parse_basic(value: str) -> BasicAuth:
    username, sep, password = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError("expected USER:PASS")
    return BasicAuth(username=username, password=password)


def _parse_json(value: str):
    try:
        return json.loads(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid JSON: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hardfetch",
        description="Issue an HTTP request with retries, timeouts and URL checks.",
    )
    parser.add_argument("method", type=str.upper, choices=METHODS, help="HTTP method")
    parser.add_argument("url", help="Target URL (http or https)")
    parser.add_argument(
        "-H", "--header",
        action="append",
        type=_parse_header,
        default=[],
        help="Request header as 'Name: value' (repeatable)",
    )

    body = parser.add_mutually_exclusive_group()
    body.add_argument("--data", help="Raw request body, sent verbatim")
    body.add_argument("--json", type=_parse_json, dest="json_body", help="JSON request body")

    auth = parser.add_mutually_exclusive_group()
    auth.add_argument("--bearer", metavar="TOKEN", help="Bearer token")
    auth.add_argument("--basic", metavar="USER:PASS", type=_parse_basic, help="Basic credentials")
    auth.add_argument("--api-key", metavar="KEY", help="API key")
    parser.add_argument(
        "--api-key-header",
        default=CLIENT_SETTINGS.api_key_header,
        help="Header carrying --api-key",
    )

    parser.add_argument("--timeout", type=int, default=CLIENT_SETTINGS.timeout, help="Per-attempt timeout (ms)")
    parser.add_argument("--retries", type=int, default=CLIENT_SETTINGS.retries, help="Retries after the first attempt")
    parser.add_argument("--retry-delay", type=int, default=CLIENT_SETTINGS.retry_delay, help="Base backoff delay (ms)")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    return parser


def spec_from_args(args: argparse.Namespace) -> RequestSpec:
    authentication = None
    if args.bearer:
        authentication = BearerAuth(token=args.bearer)
    elif args.basic:
        authentication = args.basic
    elif args.api_key:
        authentication = ApiKeyAuth(key=args.api_key, header=args.api_key_header)

    body = args.data if args.data is not None else args.json_body

    return RequestSpec(
        url=args.url,
        method=args.method,
        headers=dict(args.header),
        body=body,
        timeout=args.timeout,
        retries=args.retries,
        retry_delay=args.retry_delay,
        authentication=authentication,
    )


async def run(spec: RequestSpec):
    async with HttpClient() as client:
        return await client.execute(spec)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        from hardfetch import configure_logging
        configure_logging('DEBUG')

    try:
        spec = spec_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        response = asyncio.run(run(spec))
    except ClientError as exc:
        error = {"error": str(exc), "status": exc.status}
        if exc.response is not None:
            error["response"] = exc.response.to_dict()
        print(json.dumps(error, ensure_ascii=False, default=str), file=sys.stderr)
        return 1
    except HardFetchError as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=False), file=sys.stderr)
        return 2

    try:
        print(json.dumps(response.to_dict(), ensure_ascii=False, default=str), flush=True)
    except BrokenPipeError:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
