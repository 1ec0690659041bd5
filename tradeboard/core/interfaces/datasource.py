from abc import ABC, abstractmethod
from tradeboard.core.entities.query import QuerySpec, QueryResult

class IDataSource(ABC):
    @abstractmethod
    def is_configured(self) -> bool:
        """
        False when the store connection details are missing.
        Callers short-circuit to empty results instead of querying.
        """
        pass

    @abstractmethod
    async def execute(self, spec: QuerySpec) -> QueryResult:
        """
        Runs one read. Implementations report failures through
        QueryResult.error rather than raising.
        """
        pass
