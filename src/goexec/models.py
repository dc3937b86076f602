"""Pydantic models for request and response bodies.

Field names on the wire are camelCase (``executionMs``, ``formattedCode``)
so existing editor front-ends keep working; Python code uses the
snake_case attribute names.  Optional fields are left out of responses
when they are ``None``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CodeRequest(BaseModel):
    """Request body shared by the execute and format endpoints."""

    code: str = Field(..., description="Complete Go source file (package main).")


class ExecutionResult(BaseModel):
    """Response body for code execution."""

    model_config = ConfigDict(populate_by_name=True)

    stdout: str = ""
    stderr: str = ""
    execution_ms: int = Field(default=0, ge=0, alias="executionMs")
    error: Optional[str] = None
    success: bool

    @model_validator(mode="after")
    def _error_iff_failed(self) -> "ExecutionResult":
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("a failed result needs an error message")
        return self


class FormatResult(BaseModel):
    """Response body for code formatting."""

    model_config = ConfigDict(populate_by_name=True)

    formatted_code: Optional[str] = Field(default=None, alias="formattedCode")
    error: Optional[str] = None
    success: bool

    @model_validator(mode="after")
    def _error_iff_failed(self) -> "FormatResult":
        if self.success:
            if self.error is not None:
                raise ValueError("a successful result cannot carry an error")
            if not self.formatted_code:
                raise ValueError("a successful result needs formatted code")
        else:
            if not self.error:
                raise ValueError("a failed result needs an error message")
            if self.formatted_code:
                raise ValueError("a failed result cannot carry formatted code")
        return self
