"""
Command-line interface for the ANN benchmark harness.
"""

import sys

import click
from rich.console import Console
from rich.markup import escape

from annbench.core.errors import BenchmarkError

console = Console()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    sys.exit(1)


def _configure(ctx, overrides):
    """Apply CLI overrides to the loaded config, exiting on invalid values."""
    from annbench.core.config import apply_overrides

    try:
        return apply_overrides(ctx.obj["config"], overrides)
    except ValueError as e:
        _fail(e)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to config file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
@click.pass_context
def main(ctx, config_path, log_level):
    """annbench - recall and latency benchmarks for ANN indexes."""
    from annbench.core.config import apply_overrides, get_default_config, load_config
    from annbench.core.logger import setup_logging

    try:
        cfg = load_config(config_path) if config_path else get_default_config()
        cfg = apply_overrides(cfg, {"experiment": {"log_level": log_level}})
    except ValueError as e:
        _fail(e)
    setup_logging(cfg.experiment.log_level, console)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@main.command()
@click.argument("dataset_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_path", type=click.Path(dir_okay=False))
@click.option("--num-partitions", "-p", type=int, default=None, help="Number of partitions")
@click.option("--num-divisions", "-d", type=int, default=None, help="Number of subvector divisions")
@click.option("--num-codes", "-c", type=int, default=None, help="Number of codes per division")
@click.option("--database", default=None, help="Database adapter")
@click.option("--dimensions", type=int, default=None, help="Expected vector dimensions")
@click.option("--report", type=click.Path(dir_okay=False), default=None, help="Write the build report as JSON")
@click.pass_context
def build(ctx, dataset_path, output_path, num_partitions, num_divisions, num_codes, database, dimensions, report):
    """Build an index over DATASET_PATH and save it to OUTPUT_PATH."""
    from annbench.benchmark import BenchmarkRunner, save_build_report
    cfg = _configure(ctx, {
        "build": {
            "database": database,
            "num_partitions": num_partitions,
            "num_divisions": num_divisions,
            "num_codes": num_codes,
        },
        "dataset": {"dimensions": dimensions},
    })

    try:
        build_report = BenchmarkRunner(cfg, console).build(dataset_path, output_path)
    except (BenchmarkError, ValueError) as e:
        _fail(e)

    if report:
        save_build_report(build_report, report)
        console.print(f"[green]Build report saved to {report}[/green]")


@main.command()
@click.argument("dataset_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("database_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("queries_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--query-index", "-q", type=int, default=None, help="Query vector index (random if omitted)")
@click.option("-k", "--k", "k", type=int, default=None, help="Number of nearest neighbors")
@click.option("--nprobe", "-p", type=int, default=None, help="Number of partitions to search")
@click.option("--dimensions", type=int, default=None, help="Expected vector dimensions")
@click.pass_context
def query(ctx, dataset_path, database_path, queries_path, query_index, k, nprobe, dimensions):
    """Run one query against a saved index and report its recall."""
    from annbench.benchmark import BenchmarkRunner
    cfg = _configure(ctx, {
        "query": {"k": k, "nprobe": nprobe},
        "dataset": {"dimensions": dimensions},
    })

    try:
        BenchmarkRunner(cfg, console).query(dataset_path, database_path, queries_path, query_index=query_index)
    except (BenchmarkError, ValueError) as e:
        _fail(e)


@main.command()
@click.argument("dataset_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("database_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("queries_path", type=click.Path(exists=True, dir_okay=False))
@click.option("-k", "--k", "k", type=int, default=None, help="Number of nearest neighbors")
@click.option("--nprobe", "-p", type=int, default=None, help="Number of partitions to search")
@click.option("--stats-path", "-s", type=click.Path(dir_okay=False), default=None, help="Save stats as JSON")
@click.option("--limit", "-l", type=int, default=None, help="Only run the first N queries")
@click.option("--concurrent", "--async", "-a", "concurrent", is_flag=True, help="Overlap queries on a thread pool")
@click.option("--concurrency", type=int, default=None, help="Maximum queries in flight")
@click.option("--skip-failures", is_flag=True, help="Skip failed queries instead of aborting")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False), default=None, help="Save stats as CSV")
@click.option("--plot-dir", type=click.Path(file_okay=False), default=None, help="Save latency/recall plots")
@click.option("--dimensions", type=int, default=None, help="Expected vector dimensions")
@click.pass_context
def batch(ctx, dataset_path, database_path, queries_path, k, nprobe, stats_path, limit, concurrent,
          concurrency, skip_failures, csv_path, plot_dir, dimensions):
    """Run every query against a saved index and report statistics."""
    from annbench.benchmark import BenchmarkRunner
    from annbench.core.types import RunMode

    cfg = _configure(ctx, {
        "query": {"k": k, "nprobe": nprobe},
        "batch": {"concurrency": concurrency, "skip_failures": True if skip_failures else None},
        "dataset": {"dimensions": dimensions},
    })
    mode = RunMode.CONCURRENT if concurrent else RunMode.SEQUENTIAL

    try:
        report = BenchmarkRunner(cfg, console).batch(
            dataset_path,
            database_path,
            queries_path,
            mode=mode,
            limit=limit,
            stats_path=stats_path,
            plot_dir=plot_dir,
        )
    except (BenchmarkError, ValueError) as e:
        _fail(e)

    if csv_path:
        from annbench.reporting import CSVExporter

        CSVExporter().export(report, csv_path)
        console.print(f"[green]Stats saved to {csv_path}[/green]")


@main.command()
@click.argument("output_dir", type=click.Path(file_okay=False))
@click.option("--num-vectors", "-n", type=int, default=100_000, help="Number of base vectors")
@click.option("--num-queries", "-q", type=int, default=1_000, help="Number of query vectors")
@click.option("--dimensions", "-d", type=int, default=128, help="Vector dimensions")
@click.option("--distribution", type=click.Choice(["gaussian", "uniform"]), default="gaussian")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--overwrite", is_flag=True, help="Replace existing files")
@click.pass_context
def generate(ctx, output_dir, num_vectors, num_queries, dimensions, distribution, seed, overwrite):
    """Generate a synthetic fvecs dataset (base.fvecs, query.fvecs)."""
    from annbench.datasets import generate_random_dataset

    seed = ctx.obj["config"].experiment.seed if seed is None else seed
    try:
        base_path, query_path = generate_random_dataset(
            output_dir,
            num_vectors=num_vectors,
            num_queries=num_queries,
            dimensions=dimensions,
            seed=seed,
            distribution=distribution,
            overwrite=overwrite,
        )
    except (BenchmarkError, OSError, ValueError) as e:
        _fail(e)

    console.print(f"[green]Wrote {base_path} and {query_path}[/green]")


@main.command()
def list_databases():
    """List available database adapters."""
    from annbench.databases import list_available_databases

    console.print("[bold]Available Databases:[/bold]")
    for db in list_available_databases():
        console.print(f"  - {db}")


@main.command()
def info():
    """Show system information."""
    from annbench.core.config import detect_hardware

    hw = detect_hardware()

    console.print("[bold]System Information:[/bold]")
    console.print(f"  Platform: {hw.get('platform', 'Unknown')}")
    console.print(f"  Python: {hw.get('python_version', 'Unknown')}")

    cpu = hw.get("cpu", {})
    console.print(f"  CPU: {cpu.get('brand', 'Unknown')}")
    console.print(f"  Cores: {cpu.get('cores_logical', 'Unknown')}")

    mem = hw.get("memory", {})
    console.print(f"  Memory: {mem.get('total_gb', 0):.1f} GB")


if __name__ == "__main__":
    main()
