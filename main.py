import sys
from os.path import dirname, join

sys.path.insert(0, dirname(__file__))
import luigi
import click
from toolkit import run_cmd, get_validate_path
import warnings;warnings.filterwarnings('ignore')


@click.group()
def cli():
    pass


@cli.command()
@click.argument('cmd', nargs=-1)
def run(cmd):
    luigi.run(cmdline_args=cmd)


def get_params(odir, config):
    "defaults merged with a --config file, as the tasks see them"
    from tasks.basic_tasks import base_luigi_task
    return base_luigi_task(odir=odir, config=config).get_config()


@cli.command(help="check the length of the cleaned reads and suggest the DADA2 truncation.")
@click.option("-o", "--odir", required=True, help="base directory of the project")
@click.option("-c", "--config", default=None, help="python file overriding the default parameters")
def diagnose(odir, config):
    from config import default_file_structures as dfs
    from static.diagnostic import read_lengths, find_paired_reads, recommend_truncation
    odir = get_validate_path(odir)
    params = get_params(odir, config)
    r1, r2 = find_paired_reads(join(odir, dfs.cleaned_dir))
    click.echo(f"R1: {r1}\nR2: {r2}")
    result = recommend_truncation(read_lengths(r1, n=params['n_reads_check']),
                                  read_lengths(r2, n=params['n_reads_check']),
                                  amplicon_length=params['amplicon_length'])
    for read in ['r1', 'r2']:
        click.echo("{}: min={min} max={max} median={median}".format(read.upper(), **result[read]))
    click.echo(f"Expected overlap: {result['overlap']}bp (amplicon {result['amplicon_length']}bp)")
    if result['status'] == 'critical':
        click.echo("CRITICAL: reads are too short to cover the amplicon")
    elif result['low_overlap']:
        click.echo("WARNING: overlap under 40bp, pair merging may fail")
    click.echo(f"Status: {result['status']}")
    for k, v in result['dada2_args'].items():
        click.echo(f"  --p-{k.replace('_', '-')} {v}")


@cli.command("loss-report", help="where the reads and the ASVs are lost along the DADA2 and filtering steps.")
@click.option("-o", "--odir", required=True, help="base directory of the project")
@click.option("-c", "--config", default=None, help="python file overriding the default parameters")
@click.option("--log-path", default=None, help="file receiving the qiime2 commands")
def loss_report(odir, config, log_path):
    from config import default_file_structures as dfs
    from static.diagnostic import summarize_dada2_stats, count_table_features
    from static.q2_function import read_dada2_stats
    odir = get_validate_path(odir)
    params = get_params(odir, config)
    core_dir = join(odir, dfs.qiime_dir, dfs.q2_core)
    tmp_dir = join(odir, dfs.tmp_dir, 'loss_report')

    stats_dir = join(tmp_dir, 'dada2_stats')
    run_cmd(f"{params['qiime2_p']} tools export --input-path {join(core_dir, dfs.q2_dada2_stats)} --output-path {stats_dir}",
            log_file=log_path)
    losses, low_samples = summarize_dada2_stats(read_dada2_stats(join(stats_dir, 'stats.tsv')),
                                                low_read_threshold=params['low_read_threshold'])
    click.echo("DADA2 losses per step")
    for _, row in losses.iterrows():
        click.echo(f"  {row['step']:<20} {row['before']:>10,} -> {row['after']:>10,}  lost {row['lost']:>10,} ({row['lost_pct']:.1f}%)")
    if not low_samples.empty:
        click.echo(f"Samples with fewer than {params['low_read_threshold']} final reads")
        for sid, row in low_samples.iterrows():
            click.echo(f"  {sid:<20} {int(row['final_reads']):>8,} / {int(row['input_reads']):>8,} ({row['retention_pct']:.1f}%)")

    click.echo("ASVs per table")
    for name in [dfs.q2_table, dfs.q2_table_decontam, dfs.q2_table_final]:
        counts = count_table_features(join(core_dir, name),
                                      join(tmp_dir, name.replace('.qza', '')),
                                      qiime2_p=params['qiime2_p'],
                                      biom_p=params['biom_p'],
                                      log_file=log_path)
        if counts is None:
            click.echo(f"  {name:<20} missing")
            continue
        num_asvs, num_samples = counts
        click.echo(f"  {name:<20} {num_asvs} ASVs, {num_samples} samples")
    if counts is not None:
        if num_asvs < params['critical_asv_count']:
            click.echo(f"CRITICAL: {num_asvs} ASVs left, the provider reported {params['expected_asv_count']}")
        elif num_asvs < params['expected_asv_count']:
            click.echo(f"{params['expected_asv_count'] - num_asvs} ASVs fewer than the provider reported ({params['expected_asv_count']})")


@cli.command(help="remove the qiime2 outputs so the next run starts from the import.")
@click.option("-o", "--odir", required=True, help="base directory of the project")
@click.option("-y", "--yes", is_flag=True, help="do not ask for confirmation")
def clean(odir, yes):
    from config import default_file_structures as dfs
    from static.diagnostic import reset_outputs
    odir = get_validate_path(odir)
    if not yes:
        click.confirm(f"Remove {dfs.qiime_dir}, temporary files, manifest and metadata under {odir}?", abort=True)
    removed, cleaned = reset_outputs(odir,
                                     dfs.qiime_dir,
                                     [dfs.tmp_dir, dfs.mafft_tmp_dir],
                                     [dfs.manifest_file, dfs.metadata_file],
                                     dfs.cleaned_dir)
    for path in removed:
        click.echo(f"removed {path}")
    click.echo(f"{len(cleaned)} cleaned samples available in {dfs.cleaned_dir}")


class workflow(luigi.Task):
    odir = luigi.Parameter()
    tab = luigi.Parameter(default=None)
    raw_dir = luigi.Parameter(default=None)
    reads = luigi.ChoiceParameter(choices=['trimmed', 'raw'], default='trimmed')
    dry_run = luigi.BoolParameter(default=False)
    log_path = luigi.Parameter(default=None)
    config = luigi.Parameter(default=None)

    def requires(self):
        from tasks.for_preprocess import multiqc, view_demux
        from tasks.for_dada2 import view_dada2_stats, view_rep_seq_clean
        from tasks.unify_postanalysis import view_taxonomy
        from tasks.export_tables import final_report
        kwargs = dict(odir=get_validate_path(self.odir),
                      tab=get_validate_path(self.tab) if self.tab else None,
                      raw_dir=get_validate_path(self.raw_dir) if self.raw_dir else None,
                      reads=self.reads,
                      dry_run=self.dry_run,
                      log_path=self.log_path,
                      config=self.config)

        tasks = [multiqc(status='before', **kwargs)]
        if self.reads == 'trimmed':
            tasks.append(multiqc(status='after', **kwargs))
        tasks += [view_demux(**kwargs),
                  view_dada2_stats(**kwargs),
                  view_rep_seq_clean(**kwargs),
                  view_taxonomy(**kwargs),
                  final_report(**kwargs)]
        return tasks

    def run(self):
        pass


if __name__ == '__main__':
    cli()
