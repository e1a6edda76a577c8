"""
Middleware Layer
================

- pipeline:            Pipe and Pipeline (ordering, substitution, merging)
- middleware_pipeline: request/response/fatal pipelines behind one API
"""

from .middleware_pipeline import MiddlewarePipeline
from .pipeline import Pipe, PipeCallable, Pipeline

__all__ = [
    "MiddlewarePipeline",
    "Pipe",
    "PipeCallable",
    "Pipeline",
]
