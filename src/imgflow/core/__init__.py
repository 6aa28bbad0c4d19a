"""
Core modules: configuration, logging, exceptions, dependency probes and the
workflow engine (imgflow.core.workflow).
"""
