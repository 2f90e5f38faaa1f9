import os
import shutil
import logging
from os.path import dirname, join, exists
from subprocess import CalledProcessError

import luigi
from tasks.basic_tasks import base_luigi_task, tabulate_metadata
from tasks.for_dada2 import decontaminate
from tasks.for_preprocess import write_metadata_file
from config import default_file_structures as dfs
from toolkit import valid_path, touch_outputs

logger = logging.getLogger('luigi-interface')


def read_value(infile, default=''):
    with open(infile) as f1:
        value = f1.read().strip()
    return value if value else default


def write_value(ofile, value):
    valid_path(ofile, check_ofile=1)
    with open(ofile, 'w') as f1:
        f1.write(f"{value}\n")


def q2_outputs(outputs, odir):
    "--o-* options of a qiime2 action, from a dict of output name -> file name"
    return ' '.join("--o-%s %s" % (k.replace('_', '-'), join(odir, v))
                    for k, v in outputs.items())


class build_tree(base_luigi_task):
    """
    MAFFT alignment + FastTree, retried once with PartTree.
    A missing tree is not fatal, the diversity steps fall back to the
    non phylogenetic metrics.
    """

    def requires(self):
        return decontaminate(**self.get_kwargs())

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_core, 'tree.status'))

    def remove_partial(self):
        for f in dfs.q2_tree_outputs.values():
            f = self.qiime_path(dfs.q2_core, f)
            if exists(f):
                os.remove(f)

    def run(self):
        rep_seqs_clean = self.input()[1].path
        core_dir = self.qiime_path(dfs.q2_core)
        rooted_tree = join(core_dir, dfs.q2_tree_outputs['rooted_tree'])
        mafft_tmp = self.base_path(dfs.mafft_tmp_dir)
        cmd = "{qiime2_p} phylogeny align-to-tree-mafft-fasttree --i-sequences {rep_seqs} --p-n-threads {thread} {outputs}".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            rep_seqs=rep_seqs_clean,
            thread=self.get_config_params('phylogeny_thread'),
            outputs=q2_outputs(dfs.q2_tree_outputs, core_dir))

        ok = True
        try:
            self.run_q2(cmd, tmpdir=mafft_tmp)
        except CalledProcessError:
            ok = False
        if not self.dry_run:
            ok = ok and exists(rooted_tree)
        if not ok:
            logger.warning("MAFFT failed with default settings, retrying with --p-parttree...")
            self.remove_partial()
            try:
                self.run_q2(cmd + ' --p-parttree', tmpdir=mafft_tmp)
            except CalledProcessError:
                pass
            ok = exists(rooted_tree)
        shutil.rmtree(mafft_tmp, ignore_errors=True)

        if ok:
            logger.info("Phylogenetic tree created: %s", rooted_tree)
        else:
            logger.warning("Phylogenetic tree not created, continuing without Faith PD")
        if self.dry_run:
            touch_outputs([luigi.LocalTarget(rooted_tree)])
        write_value(self.output().path, 'rooted' if ok else 'failed')


def has_tree(status_target):
    return read_value(status_target.path) == 'rooted'


class sampling_depth(base_luigi_task):
    """
    rarefaction depth of the final table, see `choose_sampling_depth`.
    """

    def requires(self):
        return decontaminate(**self.get_kwargs())

    def output(self):
        return [luigi.LocalTarget(self.qiime_path(dfs.q2_export, dfs.sampling_depth_file)),
                luigi.LocalTarget(self.qiime_path(dfs.q2_export, dfs.max_depth_file))]

    def run(self):
        from static.q2_function import get_sample_depths, choose_sampling_depth
        table_final = self.input()[2].path
        export_dir = self.qiime_path(dfs.q2_export, 'table-final-temp')
        self.run_q2(f"{self.get_config_params('qiime2_p')} tools export --input-path {table_final} --output-path {export_dir}")
        self.run_q2(f"{self.get_config_params('biom_p')} convert -i {export_dir}/feature-table.biom -o {export_dir}/{dfs.biom_tsv} --to-tsv")
        if self.dry_run:
            depth, max_depth = 0, 0
        else:
            depths = get_sample_depths(join(export_dir, dfs.biom_tsv))
            depth, max_depth = choose_sampling_depth(depths,
                                                     min_depth=self.get_config_params('min_depth'),
                                                     quantile=self.get_config_params('depth_quantile'))
        logger.info("Selected Sampling Depth: %s", depth)
        logger.info("Max Depth: %s", max_depth)
        write_value(self.output()[0].path, depth)
        write_value(self.output()[1].path, max_depth)


class core_metrics(base_luigi_task):
    """
    metrics.status holds the mode that succeeded: phylogenetic,
    non-phylogenetic or failed. A failure is not fatal.
    """

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(tree=build_tree(**kwargs),
                    depth=sampling_depth(**kwargs),
                    decontam=decontaminate(**kwargs),
                    metadata=write_metadata_file(**kwargs))

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_core_metrics, 'metrics.status'))

    def clear(self):
        odir = self.qiime_path(dfs.q2_core_metrics)
        shutil.rmtree(odir, ignore_errors=True)
        os.makedirs(odir, exist_ok=True)
        return odir

    def run(self):
        qiime2_p = self.get_config_params('qiime2_p')
        table_final = self.input()['decontam'][2].path
        metadata = self.input()['metadata'].path
        depth = read_value(self.input()['depth'][0].path)
        rooted_tree = self.qiime_path(dfs.q2_core, dfs.q2_tree_outputs['rooted_tree'])
        odir = self.clear()

        base_cmd = f"--i-table {table_final} --p-sampling-depth {depth} --m-metadata-file {metadata}"
        mode = 'non-phylogenetic'
        if has_tree(self.input()['tree']):
            logger.info("Running core-metrics-phylogenetic (with Faith PD)...")
            outputs = dict(dfs.core_metrics_outputs)
            outputs.update(dfs.phylogenetic_metrics_outputs)
            cmd = f"{qiime2_p} diversity core-metrics-phylogenetic --i-phylogeny {rooted_tree} {base_cmd} {q2_outputs(outputs, odir)}"
            try:
                self.run_q2(cmd)
                mode = 'phylogenetic'
            except CalledProcessError:
                logger.warning("core-metrics-phylogenetic failed, retrying without phylogeny...")
                odir = self.clear()
        if mode == 'non-phylogenetic':
            cmd = f"{qiime2_p} diversity core-metrics {base_cmd} {q2_outputs(dfs.core_metrics_outputs, odir)}"
            try:
                self.run_q2(cmd)
            except CalledProcessError:
                logger.warning("core-metrics failed, only the extra alpha indices will be merged")
                mode = 'failed'
        logger.info("Core metrics done (%s)", mode)
        write_value(self.output().path, mode)


class alpha_rarefaction(base_luigi_task):
    """
    rarefaction curves, failures only produce a warning.
    the output lists the visualizations that were produced.
    """

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(tree=build_tree(**kwargs),
                    depth=sampling_depth(**kwargs),
                    decontam=decontaminate(**kwargs),
                    metadata=write_metadata_file(**kwargs))

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_visual, 'rarefaction.status'))

    def run(self):
        qiime2_p = self.get_config_params('qiime2_p')
        args = self.get_config_params('rarefaction_args')
        table_final = self.input()['decontam'][2].path
        metadata = self.input()['metadata'].path
        max_depth = read_value(self.input()['depth'][1].path)
        rooted_tree = self.qiime_path(dfs.q2_core, dfs.q2_tree_outputs['rooted_tree'])
        valid_path(self.output().path, check_ofile=1)

        runs = [(self.qiime_path(dfs.q2_visual, 'rarefaction-curves.qzv'), '')]
        if has_tree(self.input()['tree']):
            runs.append((self.qiime_path(dfs.q2_visual, 'rarefaction-curves-phylogenetic.qzv'),
                         f" --i-phylogeny {rooted_tree}"))
        produced = []
        for ofile, extra_str in runs:
            cmd = f"{qiime2_p} diversity alpha-rarefaction --i-table {table_final}{extra_str} --p-min-depth {args['min_depth']} --p-max-depth {max_depth} --p-steps {args['steps']} --m-metadata-file {metadata} --o-visualization {ofile}"
            try:
                self.run_q2(cmd)
                produced.append(ofile)
            except CalledProcessError:
                logger.warning("Rarefaction curves failed: %s", ofile)
        with open(self.output().path, 'w') as f1:
            for ofile in produced:
                f1.write(f"{ofile}\n")


class alpha_indices(base_luigi_task):
    """
    extra alpha diversity indices computed on the final (not rarefied) table.
    """

    def requires(self):
        return decontaminate(**self.get_kwargs())

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_diversity_indices, 'alpha_indices.status'))

    def run(self):
        qiime2_p = self.get_config_params('qiime2_p')
        table_final = self.input()[2].path
        odir = dirname(self.output().path)
        valid_path(odir, check_odir=True)
        done = []
        for metric in self.get_config_params('alpha_metrics'):
            cmd = f"{qiime2_p} diversity alpha --i-table {table_final} --p-metric {metric} --o-alpha-diversity {odir}/{metric}_vector.qza"
            try:
                self.run_q2(cmd)
                done.append(metric)
            except CalledProcessError:
                logger.warning("alpha diversity %s failed, skipped", metric)
        logger.info("%s alpha indices computed", len(done))
        with open(self.output().path, 'w') as f1:
            for metric in done:
                f1.write(f"{metric}\n")


class classify_taxonomy(base_luigi_task):

    def requires(self):
        return decontaminate(**self.get_kwargs())

    def output(self):
        return [luigi.LocalTarget(self.qiime_path(dfs.q2_core, dfs.q2_taxonomy))]

    def run(self):
        cmd = "{qiime2_p} feature-classifier classify-sklearn --i-classifier {classifier} --i-reads {rep_seqs} --o-classification {ofile}".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            classifier=self.get_config_params('classifier_path'),
            rep_seqs=self.input()[1].path,
            ofile=self.output()[0].path)
        self.run_q2(cmd)
        logger.info("Taxonomy assigned: %s", self.output()[0].path)
        if self.dry_run:
            touch_outputs(self.output())


class view_taxonomy(tabulate_metadata):
    def requires(self):
        return classify_taxonomy(**self.get_kwargs())
