"""LQL schema models: the pipeline AST, options and the schema snapshot."""
from lql.schema.expressions import (
    BinaryOp,
    Column,
    Expression,
    FunctionCall,
    InList,
    IsNull,
    Lambda,
    Like,
    LiteralValue,
    Parameter,
    Star,
    UnaryOp,
)
from lql.schema.options import CompileOptions, ParseOptions
from lql.schema.pipeline import (
    Distinct,
    Filter,
    GroupBy,
    Having,
    Join,
    Limit,
    Offset,
    OrderBy,
    OrderItem,
    Pipeline,
    Relation,
    Select,
    SelectItem,
    Stage,
    Union,
)
from lql.schema.snapshot import ColumnInfo, SchemaLookup, SchemaSnapshot, TableInfo

__all__ = [
    "BinaryOp",
    "Column",
    "Expression",
    "FunctionCall",
    "InList",
    "IsNull",
    "Lambda",
    "Like",
    "LiteralValue",
    "Parameter",
    "Star",
    "UnaryOp",
    "CompileOptions",
    "ParseOptions",
    "Distinct",
    "Filter",
    "GroupBy",
    "Having",
    "Join",
    "Limit",
    "Offset",
    "OrderBy",
    "OrderItem",
    "Pipeline",
    "Relation",
    "Select",
    "SelectItem",
    "Stage",
    "Union",
    "ColumnInfo",
    "SchemaLookup",
    "SchemaSnapshot",
    "TableInfo",
]
