from .config import BoardConfig, get_board_config, set_board_config
from .records import Camera, split_snapshot
from .indexing import index_after, is_valid_index
from .normalize import normalize_record, normalize_records
from .validate import ValidationError, is_valid_record, validate_record, validate_records
from .geometry import Box, Vec, fit_camera, shape_bounds, union_bounds
from .store import DocumentStore, MemoryStore, viewport_page_center
from .loader import LoadReport, load_snapshot, mount_snapshot
from .layout import (
    LayoutOptions,
    LayoutPlan,
    add_image,
    apply_plan,
    graph_placement,
    grid_placement,
    radial_placement,
)
from .tools import ToolCallError, parse_tool_call, parse_tool_calls, TOOL_DECLARATIONS
from .session import Session, SessionCancelled
from .assistant import AssistantService, CanvasAssistant, ChatMessage, ChatResponse, MixResult
from .persistence import (
    AutoSaver,
    Project,
    ProjectManager,
    StorageError,
    TemplateResolver,
    factory_template,
    storage_from_url,
)
from .workspace import Workspace

__all__ = [
    'BoardConfig',
    'get_board_config',
    'set_board_config',
    'Camera',
    'split_snapshot',
    'index_after',
    'is_valid_index',
    'normalize_record',
    'normalize_records',
    'ValidationError',
    'is_valid_record',
    'validate_record',
    'validate_records',
    'Box',
    'Vec',
    'fit_camera',
    'shape_bounds',
    'union_bounds',
    'DocumentStore',
    'MemoryStore',
    'viewport_page_center',
    'LoadReport',
    'load_snapshot',
    'mount_snapshot',
    'LayoutOptions',
    'LayoutPlan',
    'add_image',
    'apply_plan',
    'graph_placement',
    'grid_placement',
    'radial_placement',
    'ToolCallError',
    'parse_tool_call',
    'parse_tool_calls',
    'TOOL_DECLARATIONS',
    'Session',
    'SessionCancelled',
    'AssistantService',
    'CanvasAssistant',
    'ChatMessage',
    'ChatResponse',
    'MixResult',
    'AutoSaver',
    'Project',
    'ProjectManager',
    'StorageError',
    'TemplateResolver',
    'factory_template',
    'storage_from_url',
    'Workspace',
]
