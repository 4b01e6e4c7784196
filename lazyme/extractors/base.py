from abc import ABC, abstractmethod

from lazyme.models import JobPosting


class JobExtractorBase(ABC):
    @abstractmethod
    def extract(self, url: str, **options) -> JobPosting | None:
        pass
