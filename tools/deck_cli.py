#!/usr/bin/env python3
"""
Slide Deck Generator - Interactive WebSocket CLI

Usage:
    python tools/deck_cli.py [--url URL] [--session SESSION_ID] [--save-dir DIR]

Commands:
    generate <product> | <audience>   Generate a deck (audience optional)
    reset                             Clear the assistant chat
    j                                 Toggle raw JSON display
    q                                 Quit
    anything else                     Sent to the presentation assistant
"""

import argparse
import asyncio
import base64
import json
import sys
import uuid
from datetime import datetime
from pathlib import Path

import websockets

# ANSI color codes
COLORS = {
    'reset': '\033[0m',
    'red': '\033[91m',
    'green': '\033[92m',
    'yellow': '\033[93m',
    'blue': '\033[94m',
    'magenta': '\033[95m',
    'cyan': '\033[96m',
    'gray': '\033[90m',
    'bold': '\033[1m',
}


def color(text, color_name):
    return f"{COLORS.get(color_name, '')}{text}{COLORS['reset']}"


def format_timestamp():
    return datetime.now().strftime("%H:%M:%S")


def progress_bar(completed, total, width=20):
    filled = int(width * completed / total) if total else 0
    return "[" + "#" * filled + "-" * (width - filled) + f"] {completed}/{total}"


def save_slides(slides, save_dir, product_name):
    """Write the deck's data URIs to image files."""
    target = Path(save_dir)
    target.mkdir(parents=True, exist_ok=True)
    stem = product_name.strip().lower().replace(' ', '-') or 'deck'
    paths = []
    for slide in slides:
        header, _, encoded = slide.get('src', '').partition(',')
        extension = 'png' if 'image/png' in header else 'jpg'
        path = target / f"{stem}-{slide.get('position', 0):02d}.{extension}"
        path.write_bytes(base64.b64decode(encoded))
        paths.append(path)
    return paths


def print_message(msg_type, payload, raw_json=None, show_raw=False, save_dir=None):
    """Pretty-print a server message."""
    ts = color(f"[{format_timestamp()}]", 'gray')

    if msg_type == 'chat_message':
        print(f"{ts} {color('ASSISTANT:', 'green')} {payload.get('text', '')}")

    elif msg_type == 'status_update':
        status = payload.get('status', '')
        text = payload.get('text', '')
        total = payload.get('total')
        bar = f" {progress_bar(payload.get('completed') or 0, total)}" if total else ''
        print(f"{ts} {color('STATUS:', 'magenta')} [{status}] {text}{bar}")

    elif msg_type == 'deck_update':
        slides = payload.get('slides', [])
        product = payload.get('product_name', '')
        print(f"{ts} {color('DECK:', 'blue')} {len(slides)}/{payload.get('total_requested')} slides for '{product}'")
        if payload.get('fallback_notice'):
            print(f"    {color('NOTE:', 'cyan')} {payload['fallback_notice']}")
        if payload.get('warning'):
            print(f"    {color('WARNING:', 'yellow')} {payload['warning']} ({payload.get('first_failure_message')})")
        for slide in slides:
            label = f"[{slide.get('position')}]"
            print(f"    {color(label, 'cyan')} {slide.get('alt', '')[:80]}")
        if save_dir and slides:
            for path in save_slides(slides, save_dir, product):
                print(f"    {color('saved', 'gray')} {path}")

    elif msg_type == 'error':
        print(f"{ts} {color('ERROR:', 'red')} {payload.get('message', '')} ({payload.get('code', '')})")

    else:
        print(f"{ts} {color(f'{str(msg_type).upper()}:', 'gray')} {str(payload)[:200]}")

    if show_raw and raw_json:
        print(f"    {color('RAW:', 'gray')} {json.dumps(raw_json, indent=2)[:500]}")


def parse_command(line):
    """Translate an input line into a client message, or None for local commands."""
    if line.lower().startswith('generate '):
        product, _, audience = line[len('generate '):].partition('|')
        return {
            "type": "generate_deck",
            "payload": {"product_name": product.strip(), "audience": audience.strip()}
        }
    if line.lower() == 'reset':
        return {"type": "reset_chat"}
    return {"type": "chat_message", "payload": {"content": line}}


async def receive_messages(ws, show_raw_ref, save_dir):
    """Background task to receive and display messages."""
    try:
        async for message in ws:
            if message == 'pong':
                continue
            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                print(color(f"[RAW] {message[:200]}", 'red'))
                continue
            print_message(data.get('type', 'unknown'), data.get('payload', {}), data, show_raw_ref[0], save_dir)
            print(f"{color('> ', 'cyan')}", end='', flush=True)
    except websockets.ConnectionClosed:
        print(color("\nConnection closed", 'yellow'))
    except asyncio.CancelledError:
        pass


async def main(url, session_id=None, save_dir=None):
    """Main CLI loop."""
    if not session_id:
        session_id = f"cli-{uuid.uuid4().hex[:8]}"

    full_url = f"{url}/ws?session_id={session_id}"

    print(color("=" * 60, 'bold'))
    print(color("Slide Deck Generator - CLI", 'bold'))
    print(color("=" * 60, 'bold'))
    print(f"Session: {color(session_id, 'cyan')}")
    print(f"URL: {color(full_url, 'gray')}")
    print(color("-" * 60, 'gray'))
    print(f"  {color('generate <product> | <audience>', 'yellow')} - Generate a deck")
    print(f"  {color('reset', 'yellow')} - Clear the chat")
    print(f"  {color('j', 'yellow')} - Toggle raw JSON display")
    print(f"  {color('q', 'yellow')} - Quit")
    print(color("-" * 60, 'gray'))

    # Mutable reference so the receive task sees updates
    show_raw_ref = [False]

    try:
        async with websockets.connect(full_url, ping_interval=30, ping_timeout=10) as ws:
            print(color("Connected!\n", 'green'))
            receive_task = asyncio.create_task(receive_messages(ws, show_raw_ref, save_dir))

            loop = asyncio.get_running_loop()
            while True:
                print(f"{color('> ', 'cyan')}", end='', flush=True)
                line = (await loop.run_in_executor(None, sys.stdin.readline)).strip()

                if not line:
                    continue
                if line.lower() == 'q':
                    print(color("Goodbye!", 'yellow'))
                    break
                if line.lower() == 'j':
                    show_raw_ref[0] = not show_raw_ref[0]
                    print(color(f"Raw JSON: {'ON' if show_raw_ref[0] else 'OFF'}", 'yellow'))
                    continue

                await ws.send(json.dumps(parse_command(line)))

            receive_task.cancel()
            try:
                await receive_task
            except asyncio.CancelledError:
                pass

    except (OSError, websockets.InvalidURI, websockets.InvalidHandshake) as e:
        print(color(f"Connection error: {e}", 'red'))
        return 1
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Slide Deck Generator CLI")
    parser.add_argument("--url", default="ws://localhost:8000", help="WebSocket base URL")
    parser.add_argument("--session", default=None, help="Session ID")
    parser.add_argument("--save-dir", default=None, help="Directory to write slide images to")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.url, args.session, args.save_dir)))
