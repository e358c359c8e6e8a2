from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Tuple

from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import QApplication

from tag_overlay.controller import OverlayController
from tag_overlay.logging_utils import configure_logging, resolve_log_level
from tag_overlay.services import JsonTagStore
from tag_overlay.services.tag_store import TAG_STORE_FILENAME
from tag_overlay.settings import load_settings, resolve_settings_path
from tag_overlay.tag_model import Tag
from tag_overlay.widgets import TagOverlayWidget

STORE_PATH_ENV_VAR = "TAG_OVERLAY_STORE"

_LOGGER = logging.getLogger("TagOverlay.Launcher")


def resolve_store_path(args_store: Optional[str]) -> Path:
    if args_store:
        return Path(args_store).expanduser().resolve()
    env_override = os.getenv(STORE_PATH_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return (Path.cwd() / TAG_STORE_FILENAME).resolve()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tag people on an image")
    parser.add_argument("image", help="Image file to tag")
    parser.add_argument("--store", help=f"Tag store JSON file (default: ./{TAG_STORE_FILENAME})")
    parser.add_argument("--container-id", default="local", help="Container (post) identifier")
    parser.add_argument("--item-id", help="Item (image) identifier; defaults to the image file name")
    parser.add_argument("--settings", help="Settings JSON file")
    parser.add_argument("--log-level", help="Log level name or number")
    parser.add_argument("--enforce-format", action="store_true", help="Reject identifiers that are not usernames")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(resolve_settings_path(args.settings))
    if args.enforce_format:
        settings = replace(settings, enforce_mention_format=True)
    configure_logging(level=resolve_log_level(override=args.log_level), retention=settings.log_retention)

    image_path = Path(args.image).expanduser()
    item_id = args.item_id or image_path.name
    store = JsonTagStore(resolve_store_path(args.store))

    app = QApplication.instance() or QApplication(sys.argv[:1])
    pixmap = QPixmap(str(image_path))
    if pixmap.isNull():
        _LOGGER.error("Unable to load image %s", image_path)
        print(f"Unable to load image: {image_path}", file=sys.stderr)
        return 1

    controller = OverlayController(
        container_id=args.container_id,
        item_id=item_id,
        add_tag=store.add_tag,
        remove_tag=store.remove_tag,
        tags=store.tags_for(args.container_id, item_id),
        settings=settings,
    )
    widget = TagOverlayWidget(controller, pixmap=pixmap)
    widget.setWindowTitle(f"{image_path.name} - tags")

    def _on_store_change(container_id: str, changed_item: str, tags: Tuple[Tag, ...]) -> None:
        if (container_id, changed_item) != (args.container_id, item_id):
            return
        # Deliver on the next event-loop turn, as a remote store would.
        QTimer.singleShot(0, lambda: widget.set_tags(tags))

    unsubscribe = store.subscribe(_on_store_change)
    _LOGGER.info("Tagging %s (%s/%s) with store %s", image_path, args.container_id, item_id, store.path)
    widget.resize(pixmap.size())
    widget.show()
    try:
        return app.exec()
    finally:
        unsubscribe()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
