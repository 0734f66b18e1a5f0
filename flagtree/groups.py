"""
Flagtree constraint groups and their validator.

Groups
- MutexGroup(name, flags, allow_none): at most one member may be set; with
  allow_none=False exactly one must be set.
- RequiredGroup(name, flags): every member must be set.

Both are immutable snapshots (named tuples) so they can leave a command through
accessors without copying.

Registration rules (define_group)
- checked in this order, first failure wins:
  • empty group name             → EmptyGroupError
  • name already used on the node → GroupExistsError
  • no member names              → EmptyGroupError
  • member not registered         → FlagNotFoundError

Validation rules (validate)
- runs after every flag of the node is resolved (CLI, then environment).
- mutex groups first, then required groups, each in registration order.
- member names that no longer resolve (flag removed after the group was added)
  are skipped silently.
- fail-fast: the first violation is raised and nothing else is evaluated.
"""
import logging
from typing import NamedTuple

from .faults import *

logger = logging.getLogger(__name__)


class MutexGroup(NamedTuple):
    name: str
    flags: tuple[str, ...]
    allow_none: bool = True


class RequiredGroup(NamedTuple):
    name: str
    flags: tuple[str, ...]


def define_group(kind, name, flags, /, *, existing, lookup):
    """
    Validate a group definition and return its normalized (name, flags) pair.

    Parameters
    - kind: "mutex" or "required" (messages only).
    - name: group name.
    - flags: iterable of member flag names (long or short).
    - existing: names of the groups of the same kind already on the node.
    - lookup: callable returning the node's flag for a name (or None).
    """
    if not isinstance(name, str):
        raise TypeError(f"{kind} group name must be a string")
    if not (name := name.strip()):
        raise EmptyGroupError(
            f"{kind} group name cannot be empty",
            title="empty group name",
            code=FaultCode.EMPTY_GROUP,
            hint=f"give the {kind} group a non-empty name",
        )
    if name in existing:
        raise GroupExistsError(
            f"{kind} group {name!r} already exists",
            title="duplicated group",
            code=FaultCode.GROUP_EXISTS,
            group=name,
            hint=f"choose another name or remove the existing {kind} group first",
        )
    if isinstance(flags, str):
        flags = (flags,)
    members = []
    for member in flags:
        if not isinstance(member, str):
            raise TypeError(f"{kind} group members must be flag names")
        if (member := member.strip().lstrip("-")) and member not in members:
            members.append(member)
    if not members:
        raise EmptyGroupError(
            f"{kind} group {name!r} must reference at least one flag",
            title="empty group",
            code=FaultCode.EMPTY_GROUP,
            group=name,
            hint=f"list the flags the {kind} group constrains",
        )
    for member in members:
        if lookup(member) is None:
            raise FlagNotFoundError(
                f"flag {member!r} referenced by {kind} group {name!r} is not registered",
                title="flag not found",
                code=FaultCode.FLAG_NOT_FOUND,
                group=name,
                flag=member,
                hint="register the flag before adding it to a group",
            )
    return name, tuple(members)


def _resolve(group, lookup):
    """
    Yield each distinct flag a group still references (unresolved names skipped).
    """
    seen = set()
    for member in group.flags:
        if (flag := lookup(member)) is None:
            logger.debug("group %r skips unknown flag %r", group.name, member)
            continue
        if id(flag) in seen:
            continue
        seen.add(id(flag))
        yield member, flag


def check_mutex(group, lookup, /):
    selected = [flag.display for _, flag in _resolve(group, lookup) if flag.is_set]
    if len(selected) > 1:
        raise MutexViolationError(
            "mutually exclusive flags [%s] in group %r cannot be used together" % (", ".join(selected), group.name),
            title="mutually exclusive flags",
            code=FaultCode.MUTEX_VIOLATION,
            group=group.name,
            flags=tuple(selected),
            hint="keep only one of %s" % ", ".join(selected),
        )
    if not selected and not group.allow_none:
        members = ", ".join(flag.display for _, flag in _resolve(group, lookup))
        raise MutexGroupEmptyError(
            "one of the mutually exclusive flags [%s] in group %r must be set" % (members, group.name),
            title="missing exclusive flag",
            code=FaultCode.MUTEX_GROUP_EMPTY,
            group=group.name,
            hint="set exactly one of %s" % members,
        )


def check_required(group, lookup, /):
    for member, flag in _resolve(group, lookup):
        if not flag.is_set:
            raise GroupUnsatisfiedError(
                "required flag %r in group %r must be set" % (flag.display, group.name),
                title="missing required flag",
                code=FaultCode.GROUP_UNSATISFIED,
                group=group.name,
                flag=member,
                hint="add %s to the command line or its environment variable" % flag.usage,
            )


def validate(lookup, mutexes, requireds, /):
    """
    Run every constraint of a node, fail-fast (mutex groups before required groups).
    """
    for group in mutexes:
        check_mutex(group, lookup)
    for group in requireds:
        check_required(group, lookup)


__all__ = (
    "MutexGroup",
    "RequiredGroup",
    "define_group",
    "check_mutex",
    "check_required",
    "validate",
)
