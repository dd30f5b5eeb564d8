"""vivify: proxy-style reactive state for Python."""

from importlib.metadata import version as _version

__version__ = _version("vivify")

from vivify._tracking import ITERATE_KEY, TriggerOp, get_pending_count, track, trigger
from vivify.classify import TargetType, has_changed, mark_raw, target_type
from vivify.proxy import ReactiveDict, ReactiveList, ReactiveObject, ReactiveProxy, set_scheduler
from vivify.collection import ReactiveSet
from vivify.factory import (
    reactive,
    shallow_reactive,
    readonly,
    shallow_readonly,
    is_reactive,
    is_readonly,
    is_shallow,
    is_proxy,
    to_raw,
)
from vivify.effect import ReactiveEffect, effect
from vivify.computed import Computed, computed
from vivify.action import action, transaction, untracked
from vivify.watch import watch, WatchHandle
from vivify.bridge import StateBridge
from vivify.events import EventEmitter
from vivify.template import interpolate, render
from vivify.store import Store
# vivify.textual is opt-in and not imported here

__all__ = [
    "ITERATE_KEY",
    "TriggerOp",
    "get_pending_count",
    "track",
    "trigger",
    "TargetType",
    "has_changed",
    "mark_raw",
    "target_type",
    "ReactiveProxy",
    "ReactiveDict",
    "ReactiveList",
    "ReactiveObject",
    "ReactiveSet",
    "set_scheduler",
    "reactive",
    "shallow_reactive",
    "readonly",
    "shallow_readonly",
    "is_reactive",
    "is_readonly",
    "is_shallow",
    "is_proxy",
    "to_raw",
    "ReactiveEffect",
    "effect",
    "Computed",
    "computed",
    "action",
    "transaction",
    "untracked",
    "watch",
    "WatchHandle",
    "StateBridge",
    "EventEmitter",
    "interpolate",
    "render",
    "Store",
]
