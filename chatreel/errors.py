# -*- coding: utf-8 -*-
"""Exception types raised by the timeline and export pipeline."""
from typing import Optional


class ChatreelError(Exception):
    pass


class ScheduleInputError(ChatreelError, ValueError):
    """Message list or manifest that cannot be interpreted (not: empty, negative delay)."""


class ExportError(ChatreelError):
    """Terminal failure of one export attempt. No partial video is produced."""

    stage = "export"

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class SynthesisFailure(ExportError):
    stage = "synthesis"

    def __init__(self, message: str, index: Optional[int] = None, status: Optional[int] = None):
        super().__init__(message, index)
        self.status = status


class CaptureFailure(ExportError):
    stage = "capture"


class EncodeFailure(ExportError):
    stage = "encode"
