from gas_pharyngitis.pipeline import PipelineRunner


def main() -> None:
    """Run the full GAS pharyngitis model-selection pipeline."""
    runner = PipelineRunner("config/default.yaml")
    runner.run()


if __name__ == "__main__":
    main()
