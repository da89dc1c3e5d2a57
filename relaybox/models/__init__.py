"""Relaybox models package."""

from relaybox.models.config import (
    RelayboxConfig,
    WorkspaceConfig,
    ExecutionConfig,
    HistoryConfig,
    LoggingConfig,
)
from relaybox.models.results import (
    ActionCode,
    FailureKind,
    ResultStatus,
    RunStatus,
    ScriptStepResult,
)
from relaybox.models.script import DataFile, GlobalVariable, Script, Step, StepKind
from relaybox.models.template import DeliveryMode, Message, MessageTemplate, MessageType
from relaybox.models.variable import Variable, VariableKind

__all__ = [
    # Config
    "RelayboxConfig",
    "WorkspaceConfig",
    "ExecutionConfig",
    "HistoryConfig",
    "LoggingConfig",
    # Results
    "ActionCode",
    "FailureKind",
    "ResultStatus",
    "RunStatus",
    "ScriptStepResult",
    # Script
    "DataFile",
    "GlobalVariable",
    "Script",
    "Step",
    "StepKind",
    # Template
    "DeliveryMode",
    "Message",
    "MessageTemplate",
    "MessageType",
    # Variable
    "Variable",
    "VariableKind",
]
