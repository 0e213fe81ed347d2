from bankruptcy.pipeline import PipelineRunner


def main() -> None:
    """Run the full bankruptcy model-comparison pipeline."""
    runner = PipelineRunner("config/default.yaml")
    runner.run()


if __name__ == "__main__":
    main()
