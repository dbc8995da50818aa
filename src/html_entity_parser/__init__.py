"""Public package API for html-entity-parser."""

from html_entity_parser.builders import (
    Entity,
    FieldContent,
    FieldPath,
    Group,
    GroupStart,
    PartialGroup,
    PartialPath,
    RecordTrigger,
)
from html_entity_parser.config import load_config, load_entity_list
from html_entity_parser.entities import EntityList
from html_entity_parser.exceptions import (
    ConfigurationError,
    DownloadError,
    HtmlEntityParserError,
    LinkFollowingError,
    RowProcessingError,
    TraversalError,
)
from html_entity_parser.links import LinkFollower
from html_entity_parser.listener import HtmlParserListener, ParsingContext
from html_entity_parser.logger import get_module_logger, setup_logger
from html_entity_parser.models import EntityModel, FieldModel, FieldRole, GroupModel, TriggerModel
from html_entity_parser.parser import HtmlParser
from html_entity_parser.processors import (
    BeanListProcessor,
    ColumnProcessor,
    ProcessingContext,
    RowListProcessor,
    RowProcessor,
    column_field,
)
from html_entity_parser.results import EntityResult, ParserResults
from html_entity_parser.settings import ParserSettings
from html_entity_parser.tree import HtmlElement, build_tree, parse_tree

__all__ = [
    "HtmlParser",
    "ParserSettings",
    "EntityList",
    "Entity",
    "FieldPath",
    "FieldContent",
    "PartialPath",
    "GroupStart",
    "PartialGroup",
    "Group",
    "RecordTrigger",
    "LinkFollower",
    "EntityModel",
    "FieldModel",
    "FieldRole",
    "GroupModel",
    "TriggerModel",
    "EntityResult",
    "ParserResults",
    "HtmlElement",
    "parse_tree",
    "build_tree",
    "HtmlParserListener",
    "ParsingContext",
    "RowProcessor",
    "RowListProcessor",
    "ColumnProcessor",
    "BeanListProcessor",
    "ProcessingContext",
    "column_field",
    "load_config",
    "load_entity_list",
    "setup_logger",
    "get_module_logger",
    "HtmlEntityParserError",
    "ConfigurationError",
    "TraversalError",
    "RowProcessingError",
    "DownloadError",
    "LinkFollowingError",
]
