# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Annotation metadata, selector/template grammars and code generation."""

from .compiler import AnalyzedClass, AnnotationCompiler, FileAnalysis
from .metadata import ClassMetadata, extract_metadata

__all__ = ["AnalyzedClass", "AnnotationCompiler", "ClassMetadata", "FileAnalysis", "extract_metadata"]
