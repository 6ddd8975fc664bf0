"""Package entry point - composition root. Wire dependencies and run the CLI app."""

from rspec_style_linter.infrastructure.di.container import RSpecStyleContainer
from rspec_style_linter.interface.cli import CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    container = RSpecStyleContainer()

    deps = CLIDependencies(
        telemetry=container.get_telemetry_port(),
        filesystem=container.get_filesystem_gateway(),
        parser=container.get_parser(),
        formatter=container.get_formatter(),
        guidance_service=container.get_guidance_service(),
        load_config=container.load_config,
        build_registry=container.build_registry,
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
