"""CLI entry point for hdinsight-cli, built on cli-core-yo.

Provides the ``cluster`` command group (``create``, ``show``, ``list``,
``delete``) and the ``cluster config`` group for staging creation
parameters in a versioned config file.

Usage::

    hdinsight-cli --help
    hdinsight-cli cluster create mycluster.json --subscription <id>
    hdinsight-cli cluster list --subscription <id> --cert ~/.hdinsight/mgmt.pem
    hdinsight-cli cluster config storage add mycluster.json \\
        --account-name extra --account-key <key>
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, NoReturn, Optional

import typer
from cli_core_yo import output
from cli_core_yo.app import create_app
from cli_core_yo.runtime import _reset, initialize
from cli_core_yo.spec import CliSpec, XdgSpec

from hdinsight_cli import ui
from hdinsight_cli.errors import EXIT_SUCCESS, HDInsightError, ValidationError

# ── App specification ────────────────────────────────────────────────────────

spec = CliSpec(
    prog_name="hdinsight-cli",
    app_display_name="HDInsight Cluster CLI",
    dist_name="hdinsight-cluster-cli",
    root_help="Create and manage HDInsight compute clusters.",
    xdg=XdgSpec(app_dir_name="hdinsight"),
)

app = create_app(spec)
cluster_app = typer.Typer(help="Create, show, list and delete clusters.")
config_app = typer.Typer(help="Stage cluster-creation parameters in a config file.")
storage_app = typer.Typer(help="Additional storage accounts in a config file.")
metastore_app = typer.Typer(help="Hive / Oozie metastores in a config file.")

app.add_typer(cluster_app, name="cluster")
cluster_app.add_typer(config_app, name="config")
config_app.add_typer(storage_app, name="storage")
config_app.add_typer(metastore_app, name="metastore")

_json_output = False


# ── Root callback (global options) ───────────────────────────────────────────


@app.callback()
def _root_callback(
    json_flag: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON."
    ),
) -> None:
    """HDInsight cluster control plane."""
    global _json_output
    _reset()
    _json_output = json_flag
    debug = os.environ.get("CLI_CORE_YO_DEBUG") == "1"
    xdg_paths = app._cli_core_yo_xdg_paths  # type: ignore[attr-defined]
    initialize(spec, xdg_paths, json_mode=json_flag, debug=debug)


# ── Shared options / helpers ─────────────────────────────────────────────────

_SUBSCRIPTION = typer.Option(
    None,
    "--subscription",
    "-s",
    help="Subscription id. Defaults to HDINSIGHT_SUBSCRIPTION_ID.",
)
_CERT = typer.Option(
    None,
    "--cert",
    help="Management certificate (PEM). Defaults to HDINSIGHT_MANAGEMENT_CERT.",
)
_DEBUG = typer.Option(False, "--debug", help="Enable debug logging.")


def _enable_debug(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG)
        logging.getLogger("hdinsight_cli").setLevel(logging.DEBUG)


def _fail(exc: HDInsightError) -> NoReturn:
    output.error(str(exc))
    raise typer.Exit(exc.exit_code)


def _config_path(positional: Optional[str], option: Optional[str]) -> Optional[str]:
    """Pick the config file from ``CONFIG_FILE`` or ``--config``."""
    if positional and option and positional != option:
        raise ValidationError(
            f"Config file given twice: {positional!r} and --config {option!r}."
        )
    return positional or option


def _client(subscription: Optional[str], cert: Optional[str]) -> Any:
    from hdinsight_cli.service.context import SubscriptionContext

    return SubscriptionContext.build(subscription, cert).client()


def _emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def _show_cluster(cluster: Any, *, title: str = "Cluster", failed: bool = False) -> None:
    if _json_output:
        _emit_json(cluster.model_dump(mode="json"))
    else:
        ui.cluster_panel(cluster, title=title, failed=failed)


def _field_values(
    *,
    name: Optional[str],
    nodes: Optional[int],
    location: Optional[str],
    storage_account_name: Optional[str],
    storage_account_key: Optional[str],
    storage_container: Optional[str],
    user: Optional[str],
    password: Optional[str],
) -> Dict[str, Any]:
    return {
        "name": name,
        "node_count": nodes,
        "location": location,
        "storage_account_name": storage_account_name,
        "storage_account_key": storage_account_key,
        "storage_container": storage_container,
        "user": user,
        "password": password,
    }


# Field options shared by ``cluster create`` and ``cluster config create/set``.
_NAME = typer.Option(None, "--name", "-n", help="Cluster name.")
_NODES = typer.Option(None, "--nodes", help="Number of data nodes.")
_LOCATION = typer.Option(None, "--location", "-l", help="Cluster location.")
_SA_NAME = typer.Option(None, "--storage-account-name", help="Default storage account.")
_SA_KEY = typer.Option(None, "--storage-account-key", help="Default storage account key.")
_SA_CONTAINER = typer.Option(None, "--storage-container", help="Default storage container.")
_USER = typer.Option(None, "--user", "-u", help="Cluster admin user name.")
_PASSWORD = typer.Option(None, "--password", "-p", help="Cluster admin password.")


# ── cluster commands ─────────────────────────────────────────────────────────


@cluster_app.command("create")
def cluster_create(
    config_file: Optional[str] = typer.Argument(
        None, help="Config file with cluster parameters.",
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (same as the positional argument).",
    ),
    name: Optional[str] = _NAME,
    nodes: Optional[int] = _NODES,
    location: Optional[str] = _LOCATION,
    storage_account_name: Optional[str] = _SA_NAME,
    storage_account_key: Optional[str] = _SA_KEY,
    storage_container: Optional[str] = _SA_CONTAINER,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
    non_interactive: bool = typer.Option(
        False,
        "--non-interactive",
        help="Disable prompts; fail if a required value is missing.",
    ),
    subscription: Optional[str] = _SUBSCRIPTION,
    cert: Optional[str] = _CERT,
    debug: bool = _DEBUG,
) -> None:
    """Create a cluster and wait for it to finish provisioning.

    CONFIG_FILE may be given positionally or with --config.  Values come
    from explicit options first, then the config file, then prompts.
    """
    from hdinsight_cli.workflow.create_cluster import (
        ProvisioningContext,
        WorkflowStatus,
        run_create_workflow,
    )

    _enable_debug(debug)
    try:
        config = _config_path(config_file, config)
        client = _client(subscription, cert)
    except HDInsightError as exc:
        _fail(exc)

    prompt = None if (non_interactive or not sys.stdin.isatty()) else ui.prompt
    overrides = _field_values(
        name=name,
        nodes=nodes,
        location=location,
        storage_account_name=storage_account_name,
        storage_account_key=storage_account_key,
        storage_container=storage_container,
        user=user,
        password=password,
    )

    output.action("Creating cluster ...")
    outcome = run_create_workflow(
        ProvisioningContext(client=client),
        config_path=config,
        overrides=overrides,
        prompt=prompt,
    )

    if outcome.status == WorkflowStatus.SUCCEEDED:
        _show_cluster(outcome.cluster, title="Cluster created")
        output.success(f"Cluster {outcome.cluster.name} is {outcome.cluster.state.value}.")
        raise typer.Exit(EXIT_SUCCESS)

    output.error(str(outcome.error))
    if outcome.cluster is not None:
        _show_cluster(
            outcome.cluster,
            title="Existing cluster" if outcome.status == WorkflowStatus.ABORTED else "Cluster",
            failed=True,
        )
    raise typer.Exit(outcome.exit_code)


@cluster_app.command("show")
def cluster_show(
    name: str = typer.Argument(..., help="Cluster name."),
    subscription: Optional[str] = _SUBSCRIPTION,
    cert: Optional[str] = _CERT,
    debug: bool = _DEBUG,
) -> None:
    """Show details for one cluster."""
    from hdinsight_cli.workflow.manage_cluster import show_cluster

    _enable_debug(debug)
    try:
        cluster = show_cluster(_client(subscription, cert), name)
    except HDInsightError as exc:
        _fail(exc)
    _show_cluster(cluster, failed=cluster.has_error)


@cluster_app.command("list")
def cluster_list(
    subscription: Optional[str] = _SUBSCRIPTION,
    cert: Optional[str] = _CERT,
    debug: bool = _DEBUG,
) -> None:
    """List every cluster in the subscription."""
    from hdinsight_cli.workflow.manage_cluster import list_clusters

    _enable_debug(debug)
    try:
        clusters = list_clusters(_client(subscription, cert))
    except HDInsightError as exc:
        _fail(exc)
    if _json_output:
        _emit_json([c.model_dump(mode="json") for c in clusters])
    else:
        ui.cluster_table(clusters)


@cluster_app.command("delete")
def cluster_delete(
    name: str = typer.Argument(..., help="Cluster name."),
    subscription: Optional[str] = _SUBSCRIPTION,
    cert: Optional[str] = _CERT,
    debug: bool = _DEBUG,
) -> None:
    """Delete a cluster."""
    from hdinsight_cli.workflow.manage_cluster import delete_cluster

    _enable_debug(debug)
    output.action(f"Deleting cluster {name} ...")
    try:
        cluster = delete_cluster(_client(subscription, cert), name)
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"Cluster {cluster.name} deleted.")


# ── cluster config commands ──────────────────────────────────────────────────


@config_app.command("create")
def config_create(
    file: str = typer.Argument(..., help="Config file to write."),
    name: Optional[str] = _NAME,
    nodes: Optional[int] = _NODES,
    location: Optional[str] = _LOCATION,
    storage_account_name: Optional[str] = _SA_NAME,
    storage_account_key: Optional[str] = _SA_KEY,
    storage_container: Optional[str] = _SA_CONTAINER,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
) -> None:
    """Create a new config file."""
    from hdinsight_cli.config.editing import create_document

    try:
        create_document(
            file,
            **_field_values(
                name=name,
                nodes=nodes,
                location=location,
                storage_account_name=storage_account_name,
                storage_account_key=storage_account_key,
                storage_container=storage_container,
                user=user,
                password=password,
            ),
        )
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"Config file {file} created.")


@config_app.command("show")
def config_show(
    file: str = typer.Argument(..., help="Config file to display."),
) -> None:
    """Show the contents of a config file."""
    from hdinsight_cli.config.store import load_config

    try:
        doc = load_config(file)
    except HDInsightError as exc:
        _fail(exc)
    if _json_output:
        _emit_json(doc.to_document())
    else:
        ui.config_panel(file, doc.to_document())


@config_app.command("set")
def config_set(
    file: str = typer.Argument(..., help="Config file to update."),
    name: Optional[str] = _NAME,
    nodes: Optional[int] = _NODES,
    location: Optional[str] = _LOCATION,
    storage_account_name: Optional[str] = _SA_NAME,
    storage_account_key: Optional[str] = _SA_KEY,
    storage_container: Optional[str] = _SA_CONTAINER,
    user: Optional[str] = _USER,
    password: Optional[str] = _PASSWORD,
) -> None:
    """Set one or more fields in a config file."""
    from hdinsight_cli.config.editing import set_fields, update_document

    values = _field_values(
        name=name,
        nodes=nodes,
        location=location,
        storage_account_name=storage_account_name,
        storage_account_key=storage_account_key,
        storage_container=storage_container,
        user=user,
        password=password,
    )
    try:
        update_document(file, lambda doc: set_fields(doc, **values))
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"Config file {file} updated.")


@storage_app.command("add")
def storage_add(
    file: str = typer.Argument(..., help="Config file to update."),
    account_name: str = typer.Option(..., "--account-name", help="Storage account name."),
    account_key: str = typer.Option(..., "--account-key", help="Storage account key."),
) -> None:
    """Add (or replace) an additional storage account."""
    from hdinsight_cli.config.editing import add_storage_account, update_document

    try:
        update_document(
            file, lambda doc: add_storage_account(doc, account_name, account_key),
        )
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"Storage account {account_name} added to {file}.")


@storage_app.command("remove")
def storage_remove(
    file: str = typer.Argument(..., help="Config file to update."),
    account_name: str = typer.Option(..., "--account-name", help="Storage account name."),
) -> None:
    """Remove an additional storage account."""
    from hdinsight_cli.config.editing import remove_storage_account, update_document

    try:
        update_document(file, lambda doc: remove_storage_account(doc, account_name))
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"Storage account {account_name} removed from {file}.")


_METASTORE_TYPE = typer.Option(..., "--type", "-t", help="Metastore type: hive or oozie.")


@metastore_app.command("set")
def metastore_set(
    file: str = typer.Argument(..., help="Config file to update."),
    kind: str = _METASTORE_TYPE,
    server: str = typer.Option(..., "--server", help="Metastore SQL server."),
    database: str = typer.Option(..., "--database", help="Metastore database."),
    user: str = typer.Option(..., "--user", help="Metastore user."),
    password: str = typer.Option(..., "--password", help="Metastore password."),
) -> None:
    """Set the Hive or Oozie metastore."""
    from hdinsight_cli.config.editing import set_metastore, update_document

    try:
        update_document(
            file,
            lambda doc: set_metastore(
                doc, kind, server=server, database=database, user=user, password=password,
            ),
        )
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"{kind} metastore set in {file}.")


@metastore_app.command("clear")
def metastore_clear(
    file: str = typer.Argument(..., help="Config file to update."),
    kind: str = _METASTORE_TYPE,
) -> None:
    """Clear the Hive or Oozie metastore."""
    from hdinsight_cli.config.editing import clear_metastore, update_document

    try:
        update_document(file, lambda doc: clear_metastore(doc, kind))
    except HDInsightError as exc:
        _fail(exc)
    output.success(f"{kind} metastore cleared in {file}.")


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
