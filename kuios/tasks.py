"""Round-robin task table with per-task stacks taken from physical memory."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from .pmm import PhysicalMemoryManager

STACK_SIZE = 64 * 1024
MAX_TASKS = 125
CPU_STATE_SIZE = 48
MAX_ARGS = 4

KERNEL_CS = 0x8
KERNEL_SS = 0x10
KERNEL_EFLAGS = 0x202
USER_CS = 0x1B
USER_SS = 0x23
USER_EFLAGS = 0x3202


class NoFreeSlotError(Exception):
    """Raised when the task table has no free slot left."""


class TaskState(Enum):
    NULL = "null"
    READY = "ready"
    ZOMBIE = "zombie"


@dataclass
class CpuState:
    """Registers saved for a task that is not running."""

    eax: int = 0
    ebx: int = 0
    ecx: int = 0
    edx: int = 0
    esi: int = 0
    edi: int = 0
    ebp: int = 0
    eip: int = 0
    cs: int = 0
    eflags: int = 0
    esp: int = 0
    ss: int = 0

    @classmethod
    def _initial(
        cls,
        entry_point: int,
        stack_pointer: int,
        args: Optional[Sequence[int]],
        cs: int,
        eflags: int,
        ss: int,
    ) -> CpuState:
        regs = list(args or ())[:MAX_ARGS]
        regs.extend([0] * (MAX_ARGS - len(regs)))
        ebx, ecx, edx, esi = regs
        return cls(
            ebx=ebx,
            ecx=ecx,
            edx=edx,
            esi=esi,
            eip=entry_point,
            cs=cs,
            eflags=eflags,
            esp=stack_pointer,
            ss=ss,
        )

    @classmethod
    def kernel(
        cls, entry_point: int, stack_pointer: int, args: Optional[Sequence[int]] = None
    ) -> CpuState:
        """Initial state of a kernel-mode task; up to four arguments go in ebx, ecx, edx, esi."""
        return cls._initial(
            entry_point, stack_pointer, args, KERNEL_CS, KERNEL_EFLAGS, KERNEL_SS
        )

    @classmethod
    def user(
        cls, entry_point: int, stack_pointer: int, args: Optional[Sequence[int]] = None
    ) -> CpuState:
        """Initial state of a user-mode task; up to four arguments go in ebx, ecx, edx, esi."""
        return cls._initial(
            entry_point, stack_pointer, args, USER_CS, USER_EFLAGS, USER_SS
        )


@dataclass
class Task:
    """One slot of the task table."""

    state: TaskState = TaskState.NULL
    stack: int = 0
    kernel_stack: int = 0
    cpu_state: Optional[CpuState] = None


@dataclass
class TaskManager:
    """Fixed-size task table scheduled round robin."""

    memory: PhysicalMemoryManager
    max_tasks: int = MAX_TASKS
    idle_entry: Optional[int] = None
    tasks: list[Task] = field(init=False)
    task_count: int = field(init=False, default=0)
    current_task: Optional[int] = field(init=False, default=None)

    def __post_init__(self) -> None:
        if self.max_tasks < 1:
            raise ValueError("a task table needs at least one slot")
        self.tasks = [Task() for _ in range(self.max_tasks)]
        if self.idle_entry is not None:
            self.add_task(self.idle_entry)

    def _free_slot(self) -> int:
        for index, task in enumerate(self.tasks):
            if task.state is TaskState.NULL:
                return index
        raise NoFreeSlotError("No free slots available!")

    def _spawn(
        self, entry_point: int, args: Optional[Sequence[int]], user: bool
    ) -> int:
        if self.task_count >= self.max_tasks:
            raise NoFreeSlotError("No free slots available!")
        slot = self._free_slot()
        stack = self.memory.malloc(STACK_SIZE)
        kernel_stack = 0
        if user:
            try:
                kernel_stack = self.memory.malloc(STACK_SIZE) + STACK_SIZE
            except Exception:
                self.memory.dealloc(stack)
                raise
        stack_pointer = stack + STACK_SIZE - CPU_STATE_SIZE
        factory = CpuState.user if user else CpuState.kernel
        self.tasks[slot] = Task(
            state=TaskState.READY,
            stack=stack,
            kernel_stack=kernel_stack,
            cpu_state=factory(entry_point, stack_pointer, args),
        )
        self.task_count += 1
        return slot

    def add_task(self, entry_point: int, args: Optional[Sequence[int]] = None) -> int:
        """Start a kernel-mode task and return its slot."""
        return self._spawn(entry_point, args, user=False)

    def add_user_task(
        self, entry_point: int, args: Optional[Sequence[int]] = None
    ) -> int:
        """Start a user-mode task with its own kernel stack and return its slot."""
        return self._spawn(entry_point, args, user=True)

    def schedule(self, cpu_state: CpuState) -> tuple[CpuState, int]:
        """Save the running task's state and pick the next one.

        Returns the state to resume and the top of its kernel stack (0 if none).
        Zombie tasks are reaped here and their stacks released.
        """
        if self.current_task is not None:
            task = self.tasks[self.current_task]
            task.cpu_state = cpu_state
            if task.state is TaskState.ZOMBIE:
                self.memory.dealloc(task.stack)
                if task.kernel_stack:
                    self.memory.dealloc(task.kernel_stack - STACK_SIZE)
                self.tasks[self.current_task] = Task()
                self.task_count -= 1

        self.current_task = self.next_task()
        if self.current_task is None:
            return cpu_state, 0

        chosen = self.tasks[self.current_task]
        assert chosen.cpu_state is not None
        return chosen.cpu_state, chosen.kernel_stack

    def next_task(self) -> Optional[int]:
        """Slot of the next ready task after the current one, or None."""
        start = 0 if self.current_task is None else self.current_task + 1
        if start >= self.max_tasks:
            return None
        for offset in range(self.max_tasks):
            index = (start + offset) % self.max_tasks
            if self.tasks[index].state is TaskState.READY:
                return index
        return None

    def exit_current(self) -> None:
        """Mark the running task as finished; it is reaped on the next schedule."""
        if self.current_task is None:
            raise RuntimeError("no task is running")
        self.tasks[self.current_task].state = TaskState.ZOMBIE