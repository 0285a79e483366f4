"""Reactive binding pipeline compiler."""
