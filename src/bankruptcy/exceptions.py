class SchemaError(ValueError):
    """An expected column is absent or holds unexpected values."""


class MissingValuesError(ValueError):
    """Loaded data contains missing values; the pipeline does not impute."""

    def __init__(self, counts: dict[str, int]):
        self.counts = dict(counts)
        detail = ", ".join(f"{col}={n}" for col, n in self.counts.items())
        super().__init__(
            f"Found {sum(self.counts.values())} missing values ({detail})"
        )


class PipelineError(RuntimeError):
    """Fatal failure of one pipeline stage."""

    def __init__(self, stage: str, cause: BaseException | str):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")
