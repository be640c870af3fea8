import click
from reconverge.config import load_config, get_config_path, generate_config_example
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("generate")
@click.option("--output", "output", type=click.Path(dir_okay=False), default=None,
              help="Where to write the example (default: ~/.reconverge/config.example.json)")
def generate_config(output):
    """Generate an example configuration file with every default."""
    config_path = generate_config_example(output)
    click.echo(f"Example configuration written to {config_path}")


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))
