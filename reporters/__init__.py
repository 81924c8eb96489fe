"""Report generators for evaluated feature runs."""
from reporters.base import BaseFormatter, Breadcrumb
from reporters.formats import ReportFormat, parse_formats
from reporters.generator import ReportGenerator, copy_attachments, generators_for
from reporters.html import HTMLFormatter
from reporters.json_reporter import JSONFormatter
from reporters.junit import JUnitFormatter
from reporters.naming import encode_data_record_no, encode_no
from reporters.slideshow import SlideshowFormatter

__all__ = [
    "BaseFormatter",
    "Breadcrumb",
    "ReportFormat",
    "parse_formats",
    "ReportGenerator",
    "copy_attachments",
    "generators_for",
    "HTMLFormatter",
    "JSONFormatter",
    "JUnitFormatter",
    "SlideshowFormatter",
    "encode_data_record_no",
    "encode_no",
]
