#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
RPC CLI - Command-line client for a running subtitle translation server

Usage:
    python scripts/rpc_cli.py ping
    python scripts/rpc_cli.py info
    python scripts/rpc_cli.py sessions
    python scripts/rpc_cli.py translate --input movie.srt --language French --output movie.fr.srt
    python scripts/rpc_cli.py translate --input movie.mkv --subtitle-id 0 --language uk
    python scripts/rpc_cli.py status <job_id>
    python scripts/rpc_cli.py cancel <job_id>
"""

import sys
import os
import time
import argparse
import itertools
from pathlib import Path
from typing import Any, Optional

import httpx

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_MODEL, DEFAULT_BATCH_SIZE


class RpcCallError(Exception):
    """Error object returned by the server"""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class RpcClient:
    """Minimal synchronous JSON-RPC 2.0 client"""

    def __init__(self, url: str, timeout: float = 30.0):
        self.url = url
        self._ids = itertools.count(1)
        self._http = httpx.Client(timeout=timeout)

    def call(self, method: str, *params: Any) -> Any:
        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": next(self._ids),
        }
        response = self._http.post(self.url, json=request)
        response.raise_for_status()
        payload = response.json()
        if "error" in payload:
            raise RpcCallError(payload["error"]["code"], payload["error"]["message"])
        return payload["result"]

    def close(self):
        self._http.close()


def cmd_ping(client: RpcClient, args) -> int:
    print(client.call("ping"))
    return 0


def cmd_info(client: RpcClient, args) -> int:
    info = client.call("info")
    print(f"{info['name']} v{info['version']} ({info['api']})")
    for endpoint in info["endpoints"]:
        print(f"  - {endpoint}")
    return 0


def cmd_sessions(client: RpcClient, args) -> int:
    sessions = client.call("sessions.list")["sessions"]
    if not sessions:
        print("No active sessions")
        return 0
    print(f"{'SESSION':<34} {'FILE':<10} {'JOB'}")
    for s in sessions:
        print(f"{s['id']:<34} {s['fileType'] or '-':<10} {s['jobStatus'] or '-'}")
    return 0


def print_status(status: dict):
    line = f"Job {status['id']}: {status['status']} {status['progress']}%"
    if status.get("oracleStatus") and status["oracleStatus"] != "available":
        line += f" (oracle {status['oracleStatus']}, {status['oracleAttempts']} failed attempts)"
    if status.get("cancelled"):
        line += " [cancelled]"
    if status.get("error"):
        line += f" - {status['error']}"
    print(line)


def cmd_status(client: RpcClient, args) -> int:
    print_status(client.call("translation.status", args.job_id))
    return 0


def cmd_cancel(client: RpcClient, args) -> int:
    result = client.call("translation.cancel", args.job_id)
    if result["success"]:
        print(f"Job {args.job_id} cancelled")
        return 0
    print(f"Job {args.job_id} is not running")
    return 1


def wait_for_job(client: RpcClient, job_id: str, interval: float) -> dict:
    last_progress: Optional[int] = None
    while True:
        status = client.call("translation.status", job_id)
        if status["progress"] != last_progress or status["status"] in ("completed", "failed"):
            print_status(status)
            last_progress = status["progress"]
        if status["status"] in ("completed", "failed") or status.get("cancelled"):
            return status
        time.sleep(interval)


def cmd_translate(client: RpcClient, args) -> int:
    input_file = Path(args.input).resolve()
    if not input_file.exists():
        print(f"❌ Input file not found: {input_file}")
        return 1

    api_key = args.api_key or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        print("❌ No API key: pass --api-key or set GOOGLE_API_KEY")
        return 1

    session_id = client.call("session.create")["sessionId"]
    try:
        loaded = client.call("file.load", session_id, str(input_file))
        if loaded["type"] == "video":
            subtitles = client.call("subtitles.list", session_id)["subtitles"]
            if not subtitles:
                print("❌ Video has no SubRip subtitle tracks")
                return 1
            for sub in subtitles:
                print(f"  [{sub['id']}] {sub['language']} - {sub['title']}")
            extracted = client.call("subtitle.extract", session_id, args.subtitle_id)
            print(f"Extracted subtitle {args.subtitle_id} ({extracted['contentLength']} chars)")

        job = client.call("translation.start", session_id, {
            "apiKey": api_key,
            "language": args.language,
            "context": args.context,
            "model": args.model,
            "batchSize": args.batch_size,
        })
        job_id = job["jobId"]
        print(f"Started job {job_id}")

        try:
            status = wait_for_job(client, job_id, args.poll_interval)
        except KeyboardInterrupt:
            client.call("translation.cancel", job_id)
            print("\nCancelled")
            return 130

        if status["status"] != "completed":
            return 1

        output = Path(args.output) if args.output else input_file.with_name(f"{input_file.stem}.{args.language}.srt")
        saved = client.call("translation.save", job_id, str(output.resolve()))
        print(f"✅ Saved {saved['size']} chars to {saved['path']}")
        return 0
    finally:
        if not args.keep_session:
            client.call("session.delete", session_id)


def main():
    parser = argparse.ArgumentParser(
        description="JSON-RPC client for the AI Subtitle Translator server",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--url', default=f"http://{DEFAULT_HOST}:{DEFAULT_PORT}/rpc",
                        help='Server RPC endpoint')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('ping', help='Check the server is up')
    subparsers.add_parser('info', help='Show server info')
    subparsers.add_parser('sessions', help='List active sessions')

    # Translate command
    translate_parser = subparsers.add_parser('translate', help='Translate a subtitle or video file')
    translate_parser.add_argument('--input', '-i', required=True, help='Subtitle or video file')
    translate_parser.add_argument('--output', '-o', help='Output file (default: <input>.<language>.srt)')
    translate_parser.add_argument('--language', '-l', required=True, help='Target language')
    translate_parser.add_argument('--context', '-c', default='', help='Hint about the material')
    translate_parser.add_argument('--model', default=DEFAULT_MODEL, help='Model name')
    translate_parser.add_argument('--batch-size', type=int, default=DEFAULT_BATCH_SIZE, help='Replicas per request')
    translate_parser.add_argument('--api-key', help='Gemini API key (default: $GOOGLE_API_KEY)')
    translate_parser.add_argument('--subtitle-id', type=int, default=0, help='Subtitle track for video input')
    translate_parser.add_argument('--poll-interval', type=float, default=1.0, help='Seconds between status polls')
    translate_parser.add_argument('--keep-session', action='store_true', help='Do not delete the session afterwards')

    # Status command
    status_parser = subparsers.add_parser('status', help='Show job status')
    status_parser.add_argument('job_id', help='Job ID')

    # Cancel command
    cancel_parser = subparsers.add_parser('cancel', help='Cancel a job')
    cancel_parser.add_argument('job_id', help='Job ID')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    # Route to command handlers
    commands = {
        'ping': cmd_ping,
        'info': cmd_info,
        'sessions': cmd_sessions,
        'translate': cmd_translate,
        'status': cmd_status,
        'cancel': cmd_cancel,
    }

    client = RpcClient(args.url)
    try:
        return commands[args.command](client, args)
    except RpcCallError as e:
        print(f"❌ {e}")
        return 1
    except httpx.HTTPError as e:
        print(f"❌ Cannot reach server at {args.url}: {e}")
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
