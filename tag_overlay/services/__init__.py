from .tag_store import JsonTagStore, item_key, load_tag_store

__all__ = ["JsonTagStore", "item_key", "load_tag_store"]
