"""
Headless Forge host.

Sends one prompt to a running Forge API, follows the streamed reply the way the
builder view does, and writes the resulting sandbox page to disk:
- Optionally logs in (or signs up) and stores the exchange in a new chat
- Streams the reply, printing the plan and tool steps as they arrive
- Writes the preview document for the generated component

Run:
  uvicorn src.forge.api.main:app
  python scripts/build_component.py "a pricing table with three tiers"
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

# Ensure repository root is on sys.path so 'src' package can be imported when
# executing this script from the scripts/ directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.forge.client.preferences import ModelPreferenceStore
from src.forge.client.streaming_session import SessionUpdate, StreamingSession
from src.forge.client.transport import ForgeApiClient, TransportError
from src.forge.preview.renderer import PreviewRenderer


def _authenticate(client: ForgeApiClient, email: str, password: str) -> None:
    try:
        client.login(email, password)
    except TransportError as exc:
        if exc.status_code != 401:
            raise
        client.signup(email, password)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a component with a running Forge API")
    parser.add_argument("prompt", help="What to build")
    parser.add_argument("--api-url", default=None, help="Forge API base URL (default FORGE_API_URL)")
    parser.add_argument("--model", default=None, help="Model id to use and remember")
    parser.add_argument("--out", default="preview.html", help="Where to write the preview page")
    parser.add_argument("--email", default=None, help="Store the exchange in a chat for this account")
    parser.add_argument("--password", default=None)
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    client = ForgeApiClient(base_url=args.api_url)
    prefs = ModelPreferenceStore()
    if args.model:
        prefs.save(args.model)

    chat_id = None
    if args.email and args.password:
        _authenticate(client, args.email, args.password)
        chat_id = client.create_chat(title=args.prompt[:60], model_id=prefs.model_id)["id"]

    shown = {"plan": False, "tools": 0}

    def on_update(update: SessionUpdate) -> None:
        doc = update.document
        if doc.plan and not shown["plan"] and doc.tools:
            print(f"Plan: {doc.plan}")
            shown["plan"] = True
        for tool in doc.tools[shown["tools"]:]:
            print(f"  [{tool.kind}] {tool.description}")
        shown["tools"] = len(doc.tools)
        if update.code_changed:
            print("  preview updated")

    session = StreamingSession(
        client,
        preview=PreviewRenderer(),
        preferences=prefs,
        on_update=on_update,
        on_failure=lambda message: print(f"Error: {message}", file=sys.stderr),
        chats=client if chat_id is not None else None,
        chat_id=chat_id,
    )
    result = session.submit_initial(args.prompt)
    if result is None or not result.ok:
        return 1

    out_path = Path(args.out)
    instance = session.preview.current
    if instance is not None:
        out_path.write_text(instance.document, encoding="utf-8")

    summary = {
        "model": prefs.model_id,
        "chat_id": chat_id,
        "status": result.status,
        "interrupted": result.interrupted,
        "summary": result.document.summary if result.document else None,
        "preview": str(out_path) if instance is not None else None,
        "preview_entry": instance.entry if instance is not None else None,
        "preview_error": instance.error if instance is not None else None,
    }
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
