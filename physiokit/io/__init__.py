"""Store files and simple importers."""
from .store_file import create_store, load_channel, load_store, save_store, write_channel
from .text import import_text
