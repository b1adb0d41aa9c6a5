"""
CLI para textkit usando Click
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

import click
from tqdm import tqdm

from textkit.analysis.json_analyzer import StructuredTextAnalyzer
from textkit.analysis.sql_analyzer import SqlAnalyzer
from textkit.analysis.sql_formatter import SqlFormatter
from textkit.api import JsonStatsModel, SqlStatsReport, analyze_structured_text, validate_sql
from textkit.config.config import get_config
from textkit.core.models import InputLoadError, ParseError, TextKitError
from textkit.io.file_loader import FileLoader


class TeeFileHandler(logging.Handler):
    """Handler que escreve em arquivo e também em stderr simultaneamente"""

    def __init__(self, file_path: Path):
        super().__init__()
        self.file_path = file_path
        self.stream = sys.stderr
        self.file = open(self.file_path, 'a', encoding='utf-8')

    def close(self):
        """Fecha o arquivo quando handler é fechado"""
        if self.file:
            self.file.close()
            self.file = None
        super().close()

    def emit(self, record):
        """Escreve log em arquivo e stderr"""
        try:
            msg = self.format(record) + '\n'
            if self.file:
                self.file.write(msg)
                self.file.flush()
            self.stream.write(msg)
            self.stream.flush()
        except Exception:
            self.handleError(record)


def generate_log_filename(command_name: str, log_dir: Path) -> Path:
    """
    Gera nome de arquivo de log com timestamp e comando

    Args:
        command_name: Nome do comando executado
        log_dir: Diretório onde salvar o log

    Returns:
        Path completo do arquivo de log
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_command = command_name.replace('-', '_')
    filename = f"{safe_command}_{timestamp}.log"
    return log_dir / filename


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    auto_log: bool = False,
    command_name: Optional[str] = None,
    log_dir: Optional[str] = None
) -> Optional[Path]:
    """
    Configura logging com suporte a auto-logging

    Logs vão para stderr para que a saída dos comandos em stdout possa ser usada em pipes.

    Args:
        log_level: Nível de logging (DEBUG, INFO, WARNING, ERROR)
        log_file: Arquivo de log (opcional, sobrescreve auto-logging)
        auto_log: Se True, cria arquivo de log automaticamente
        command_name: Nome do comando (para auto-logging)
        log_dir: Diretório para logs (para auto-logging)

    Returns:
        Path do arquivo de log criado (se houver), None caso contrário
    """
    handlers = []
    log_file_path = None

    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
    elif auto_log and command_name and log_dir:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)
        log_file_path = generate_log_filename(command_name, log_dir_path)

    if log_file_path:
        handlers.append(TeeFileHandler(log_file_path))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    return log_file_path


def read_input(source, config) -> str:
    """
    Lê um click.File e aplica o limite de tamanho configurado

    Raises:
        InputLoadError: Se a entrada exceder max_input_bytes
    """
    text = source.read()
    size = len(text.encode('utf-8'))
    if size > config.max_input_bytes:
        raise InputLoadError(
            f"Input is {size} bytes, above the limit of {config.max_input_bytes} "
            f"(TEXTKIT_MAX_INPUT_BYTES)"
        )
    return text


def build_sql_formatter(config) -> SqlFormatter:
    return SqlFormatter(indent_width=config.sql_indent_width, keyword_case=config.keyword_case)


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', is_flag=True, help='Modo verbose (DEBUG)')
@click.option('--log-file', type=click.Path(), help='Arquivo de log (sobrescreve auto-logging)')
@click.option('--no-auto-log', is_flag=True, default=False, help='Desabilita criação automática de logs')
@click.pass_context
def cli(ctx, verbose, log_file, no_auto_log):
    """textkit - Estatísticas de estrutura JSON e formatação SQL"""
    ctx.ensure_object(dict)
    config = get_config()
    ctx.obj['config'] = config

    command_name = ctx.invoked_subcommand or 'cli'

    use_auto_log = not log_file and not no_auto_log and config.auto_log_enabled

    log_level = "DEBUG" if verbose else config.log_level
    log_file_path = setup_logging(
        log_level=log_level,
        log_file=log_file or config.log_file,
        auto_log=use_auto_log,
        command_name=command_name,
        log_dir=config.log_dir
    )
    ctx.obj['log_file_path'] = log_file_path

    if log_file_path:
        logging.getLogger(__name__).info(f"Execution log saved to: {log_file_path}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command('json-stats')
@click.argument('source', type=click.File('r', encoding='utf-8'), default='-')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Imprime o envelope do resultado em JSON')
@click.pass_context
def json_stats(ctx, source, as_json):
    """Imprime estatísticas de estrutura de um documento JSON"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        text = read_input(source, config)
        envelope = analyze_structured_text(text)

        if as_json:
            click.echo(envelope.model_dump_json(indent=2, exclude_none=True))
        elif envelope.ok:
            for name, value in envelope.stats.model_dump().items():
                click.echo(f"{name:<15} {value}")
        else:
            error = envelope.error
            location = f" (offset {error.offset})" if error.offset is not None else ""
            click.echo(f"Error: {error.message}{location}", err=True)

        if not envelope.ok:
            sys.exit(1)

    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command('json-format')
@click.argument('source', type=click.File('r', encoding='utf-8'), default='-')
@click.option('--minify', is_flag=True, default=False, help='Remove espaços em branco não significativos')
@click.option('--indent', type=click.IntRange(0, 16), default=None, help='Indentação (padrão: config)')
@click.pass_context
def json_format(ctx, source, minify, indent):
    """Formata ou minifica um documento JSON"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        text = read_input(source, config)
        analyzer = StructuredTextAnalyzer(indent=config.json_indent)
        if minify:
            click.echo(analyzer.minify(text))
        else:
            click.echo(analyzer.format(text, indent=indent))

    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command('json-validate')
@click.argument('source', type=click.File('r', encoding='utf-8'), default='-')
@click.pass_context
def json_validate(ctx, source):
    """Verifica a sintaxe JSON"""
    config = ctx.obj['config']

    try:
        text = read_input(source, config)
    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    result = StructuredTextAnalyzer().validate(text)
    if result.valid:
        click.echo("Valid JSON")
        return

    for issue in result.issues:
        click.echo(f"Invalid JSON: {issue}", err=True)
    sys.exit(1)


@cli.command('sql-format')
@click.argument('source', type=click.File('r', encoding='utf-8'), default='-')
@click.option('--minify', is_flag=True, default=False, help='Compacta em uma única linha')
@click.pass_context
def sql_format(ctx, source, minify):
    """Formata ou minifica SQL"""
    config = ctx.obj['config']

    try:
        text = read_input(source, config)
    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    formatter = build_sql_formatter(config)
    click.echo(formatter.minify(text) if minify else formatter.reflow(text))


@cli.command('sql-validate')
@click.argument('source', type=click.File('r', encoding='utf-8'), default='-')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Imprime o envelope do resultado em JSON')
@click.pass_context
def sql_validate(ctx, source, as_json):
    """Executa verificações consultivas de SQL (exit code 1 quando há problemas)"""
    config = ctx.obj['config']

    try:
        text = read_input(source, config)
    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    envelope = validate_sql(text)
    if as_json:
        click.echo(envelope.model_dump_json(indent=2))
    elif envelope.valid:
        click.echo("No issues found")
    else:
        for issue in envelope.issues:
            click.echo(f"- {issue}")

    if not envelope.valid:
        sys.exit(1)


@cli.command('sql-stats')
@click.argument('source', type=click.File('r', encoding='utf-8'), default='-')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Imprime as estatísticas em JSON')
@click.pass_context
def sql_stats(ctx, source, as_json):
    """Imprime um resumo estrutural do SQL"""
    config = ctx.obj['config']

    try:
        text = read_input(source, config)
    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    report = SqlStatsReport.from_stats(SqlAnalyzer().analyze_stats(text))
    if as_json:
        click.echo(report.model_dump_json(indent=2))
        return

    click.echo(f"{'statement_type':<15} {report.statement_type}")
    click.echo(f"{'lines':<15} {report.line_count}")
    click.echo(f"{'words':<15} {report.word_count}")
    click.echo(f"{'characters':<15} {report.character_count}")
    click.echo(f"{'keywords':<15} {report.keyword_count}")
    click.echo(f"{'tables':<15} {', '.join(report.tables) or '-'}")
    click.echo(f"{'functions':<15} {', '.join(report.functions) or '-'}")


@cli.command('format-dir')
@click.option('--directory', '-d', required=True, type=click.Path(exists=True, file_okay=False),
              help='Diretório com arquivos de entrada')
@click.option('--kind', type=click.Choice(['sql', 'json']), default='sql', help='Tipo de entrada (padrão: sql)')
@click.option('--extension', '-e', default=None, help='Extensão dos arquivos (padrão: igual a --kind)')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), help='Diretório de saída (padrão: config)')
@click.option('--minify', is_flag=True, default=False, help='Minifica em vez de formatar')
@click.option('--stats', 'write_stats', is_flag=True, default=False, help='Também grava um resumo stats.json')
@click.pass_context
def format_dir(ctx, directory, kind, extension, output_dir, minify, write_stats):
    """Formata todos os arquivos de um diretório em um diretório de saída"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        files = FileLoader(directory, extension or kind).load()
    except TextKitError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    output_path = Path(output_dir) if output_dir else Path(config.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    sql_formatter = build_sql_formatter(config)
    sql_analyzer = SqlAnalyzer()
    json_analyzer = StructuredTextAnalyzer(indent=config.json_indent)

    summary = {}
    failures = 0
    for name, content in tqdm(files.items(), desc="Formatting", unit="file", disable=None):
        try:
            if kind == 'sql':
                result = sql_formatter.minify(content) if minify else sql_formatter.reflow(content)
                stats = SqlStatsReport.from_stats(sql_analyzer.analyze_stats(content)).model_dump()
            else:
                result = json_analyzer.minify(content) if minify else json_analyzer.format(content)
                stats = JsonStatsModel.from_stats(json_analyzer.analyze(content)).model_dump()
        except ParseError as e:
            failures += 1
            logger.warning(f"Skipping {name}: {e}")
            continue

        target = output_path / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(result + '\n', encoding='utf-8')
        except OSError as e:
            failures += 1
            logger.error(f"Could not write {target}: {e}")
            continue

        summary[name] = stats
        logger.debug(f"Written: {target}")

    if write_stats:
        stats_file = output_path / "stats.json"
        stats_file.write_text(json.dumps(summary, indent=2), encoding='utf-8')
        click.echo(f"Stats written: {stats_file}")

    click.echo(f"Formatted {len(files) - failures} of {len(files)} file(s) into {output_path}")
    if failures:
        sys.exit(1)


if __name__ == '__main__':
    cli()
