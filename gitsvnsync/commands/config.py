import click
from gitsvnsync.config import load_config, save_config, get_config_path, get_default_config
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


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


@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.option("--yaml", "as_yaml", is_flag=True, help="Write YAML instead of JSON")
def init_config(force, as_yaml):
    """Write the default configuration to ~/.gitsvnsync/."""
    config_path = get_config_path()
    if as_yaml:
        config_path = config_path.with_suffix('.yaml')

    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path}. Use --force to overwrite.", err=True)
        return

    written = save_config(get_default_config(), config_path)
    click.echo(f"Default configuration written to {written}")
