from storygraph.modules.export.twine import export_twine
from storygraph.modules.export.types import ExportFile, ExportResult, ExportWarning

__all__ = [
    "ExportFile",
    "ExportResult",
    "ExportWarning",
    "export_twine",
]
