"""Outbound API clients."""

from .miro_client import MiroBoard, MiroClient, extract_board_id

__all__ = ["MiroBoard", "MiroClient", "extract_board_id"]
