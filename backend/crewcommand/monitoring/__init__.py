"""Prometheus instrumentation"""
