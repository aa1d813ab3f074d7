import attrs


@attrs.define
class SweepReport:
    """Per-tick counters of a scheduler sweep."""

    job: str
    skipped: bool = False
    processed: int = 0
    failed: int = 0

    @classmethod
    def skip(cls, job: str) -> 'SweepReport':
        return cls(job=job, skipped=True)
