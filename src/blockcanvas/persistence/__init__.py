from blockcanvas.persistence.base import CanvasFormatError, CanvasStore
from blockcanvas.persistence.json_file import JsonCanvasStore, dumps_canvas, loads_canvas

__all__ = ["CanvasFormatError", "CanvasStore", "JsonCanvasStore", "dumps_canvas", "loads_canvas"]
