from .actions import ActionDispatcher, normalize_result
from .codec import decode, encode
from .conditions import ConditionEvaluator, evaluate, is_empty, is_truthy
from .context import DataContext
from .documents import (
	ActionDefinition,
	ComponentDefinition,
	TabDefinition,
	ViewNode,
)
from .documents_source import (
	DirectoryDocumentSource,
	DocumentSource,
	InMemoryDocumentSource,
)
from .endpoints import EndpointCaller, HttpEndpointClient, StaticEndpoints
from .env import RuntimeConfig, build_dispatcher
from .errors import (
	DocumentDecodeError,
	EndpointError,
	ErrorCode,
	ViewEngineError,
	report,
)
from .registry import ComponentRegistry
from .renderer import BoundAction, RenderedNode, RenderTree, ViewRenderer
from .screens import FetchResult, Screen, ScreenDataCache, ScreenLoader
from .theme import RGBA, AdaptiveColor, FixedColor, FontDef, ThemeEngine
from .transforms import DEFAULT_TRANSFORMS, TransformPipeline, default_pipeline
from .values import (
	NULL,
	Array,
	Bool,
	Double,
	Int,
	Null,
	Object,
	String,
	Value,
	from_python,
)
from .version import __version__

__all__ = [
	"DEFAULT_TRANSFORMS",
	"NULL",
	"RGBA",
	"ActionDefinition",
	"ActionDispatcher",
	"AdaptiveColor",
	"Array",
	"Bool",
	"BoundAction",
	"ComponentDefinition",
	"ComponentRegistry",
	"ConditionEvaluator",
	"DataContext",
	"DirectoryDocumentSource",
	"DocumentDecodeError",
	"DocumentSource",
	"Double",
	"EndpointCaller",
	"EndpointError",
	"ErrorCode",
	"FetchResult",
	"FixedColor",
	"FontDef",
	"HttpEndpointClient",
	"InMemoryDocumentSource",
	"Int",
	"Null",
	"Object",
	"RenderTree",
	"RenderedNode",
	"RuntimeConfig",
	"Screen",
	"ScreenDataCache",
	"ScreenLoader",
	"StaticEndpoints",
	"String",
	"TabDefinition",
	"ThemeEngine",
	"TransformPipeline",
	"Value",
	"ViewEngineError",
	"ViewNode",
	"ViewRenderer",
	"__version__",
	"build_dispatcher",
	"decode",
	"default_pipeline",
	"encode",
	"evaluate",
	"from_python",
	"is_empty",
	"is_truthy",
	"normalize_result",
	"report",
]
