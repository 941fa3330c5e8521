from .excel_exporter import ExcelExporter
from .html_exporter import HTMLExporter
from .json_exporter import JSONExporter
from .xmind_exporter import XMindExporter
