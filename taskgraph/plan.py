from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from .task import Task
from .topology import Topology


class ExecutionPlan(BaseModel):
    """
    The partitions of a run, executed in order with a barrier between each one.
    Sequential plans hold a single task per partition; parallel plans hold one
    dependency level per partition.
    """

    uuid: UUID = Field(default_factory=uuid4)
    parallel: bool = False
    partitions: list[list[InstanceOf[Task]]]
    current_partition: int = -1

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_topology(cls, topology: Topology, parallel: bool = False) -> "ExecutionPlan":
        if parallel:
            partitions = [list(level) for level in topology.levels]
        else:
            partitions = [[task] for task in topology.order]

        return cls(parallel=parallel, partitions=partitions)

    @property
    def order(self) -> list[str]:
        return [task.name for partition in self.partitions for task in partition]

    @property
    def levels(self) -> list[list[str]]:
        return [[task.name for task in partition] for partition in self.partitions]

    def proceed(self) -> list[Task]:
        self.current_partition += 1
        return self.partitions[self.current_partition]
