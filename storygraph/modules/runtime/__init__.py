from storygraph.modules.runtime.errors import SaveDataError
from storygraph.modules.runtime.interpreter import RuntimeResult, choose, start
from storygraph.modules.runtime.saves import (
    LoadResult,
    deserialize_save_data,
    hydrate,
    load_game,
    save_game,
    serialize_save_data,
    snapshot,
)
from storygraph.modules.runtime.schemas import (
    RuntimeChoice,
    RuntimeEvent,
    RuntimeFailure,
    RuntimeFrame,
    RuntimeLimits,
    RuntimeSaveData,
    RuntimeSnapshot,
    StackFrame,
)
from storygraph.modules.runtime.state import RuntimeOptions, RuntimeState, create_runtime

__all__ = [
    "LoadResult",
    "RuntimeChoice",
    "RuntimeEvent",
    "RuntimeFailure",
    "RuntimeFrame",
    "RuntimeLimits",
    "RuntimeOptions",
    "RuntimeResult",
    "RuntimeSaveData",
    "RuntimeSnapshot",
    "RuntimeState",
    "SaveDataError",
    "StackFrame",
    "choose",
    "create_runtime",
    "deserialize_save_data",
    "hydrate",
    "load_game",
    "save_game",
    "serialize_save_data",
    "snapshot",
    "start",
]
