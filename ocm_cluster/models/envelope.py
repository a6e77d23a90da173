# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Request and response envelopes of the lifecycle operations."""

from pydantic import BaseModel, Field

from .cluster_state import ClusterState
from .enums import Severity


class Diagnostic(BaseModel):
    """A message surfaced to the user: short summary plus detail."""

    severity: Severity = Field(..., description="Whether the diagnostic blocks the operation")
    summary: str = Field(..., description="Short headline")
    detail: str = Field("", description="Longer description naming the offending field/value")


class Diagnostics(BaseModel):
    """Ordered collection of diagnostics produced by one operation."""

    items: list[Diagnostic] = Field(default_factory=list)

    def add_error(self, summary: str, detail: str) -> None:
        self.items.append(Diagnostic(severity=Severity.ERROR, summary=summary, detail=detail))

    def add_warning(self, summary: str, detail: str) -> None:
        self.items.append(Diagnostic(severity=Severity.WARNING, summary=summary, detail=detail))

    def has_error(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.items)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.items if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.items if d.severity == Severity.WARNING]


class CreateRequest(BaseModel):
    plan: ClusterState


class ReadRequest(BaseModel):
    state: ClusterState


class UpdateRequest(BaseModel):
    state: ClusterState
    plan: ClusterState


class DeleteRequest(BaseModel):
    state: ClusterState


class ImportRequest(BaseModel):
    id: str = Field(..., description="Identifier of an existing cluster to adopt")


class OperationResponse(BaseModel):
    """
    Result of a lifecycle operation.

    ``state`` is the record the caller should persist. On failure it is the
    unchanged prior state (or None when nothing existed before). When
    ``state_removed`` is set the caller drops the record.
    """

    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    state: ClusterState | None = None
    state_removed: bool = False
