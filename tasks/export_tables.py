"""
Flat tables for the downstream statistics.

Every artifact is exported with `qiime tools export` (+ `biom convert` for
feature tables) under `05_QIIME2/export`, then reshaped with pandas.
"""
import os
import shutil
import logging
from os.path import join, exists, basename

import luigi
from tasks.basic_tasks import base_luigi_task
from tasks.for_dada2 import run_dada2, decontaminate
from tasks.unify_postanalysis import (build_tree, sampling_depth, core_metrics, alpha_rarefaction,
                                      alpha_indices, classify_taxonomy, read_value, has_tree)
from config import default_file_structures as dfs
from toolkit import valid_path, touch_outputs

logger = logging.getLogger('luigi-interface')


class export_core(base_luigi_task):

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(dada2=run_dada2(**kwargs),
                    decontam=decontaminate(**kwargs),
                    taxonomy=classify_taxonomy(**kwargs),
                    tree=build_tree(**kwargs))

    def output(self):
        export_dir = self.qiime_path(dfs.q2_export)
        return dict(feature_table=luigi.LocalTarget(join(export_dir, 'feature_table', dfs.biom_tsv)),
                    rep_seqs=luigi.LocalTarget(join(export_dir, 'rep_seqs', 'dna-sequences.fasta')),
                    taxonomy=luigi.LocalTarget(join(export_dir, 'taxonomy', 'taxonomy.tsv')),
                    dada2_stats=luigi.LocalTarget(join(export_dir, 'dada2_stats', 'stats.tsv')))

    def export(self, qza, odir):
        self.run_q2(f"{self.get_config_params('qiime2_p')} tools export --input-path {qza} --output-path {odir}")

    def run(self):
        from static.q2_function import rename_feature_header
        export_dir = self.qiime_path(dfs.q2_export)
        _, rep_seqs_clean, table_final = [_.path for _ in self.input()['decontam']]

        logger.info("Exporting feature table...")
        feature_dir = join(export_dir, 'feature_table')
        self.export(table_final, feature_dir)
        self.run_q2(f"{self.get_config_params('biom_p')} convert -i {feature_dir}/feature-table.biom -o {feature_dir}/{dfs.biom_tsv} --to-tsv")
        if not self.dry_run:
            rename_feature_header(self.output()['feature_table'].path)

        logger.info("Exporting representative sequences...")
        self.export(rep_seqs_clean, join(export_dir, 'rep_seqs'))
        logger.info("Exporting taxonomy...")
        self.export(self.input()['taxonomy'][0].path, join(export_dir, 'taxonomy'))
        if has_tree(self.input()['tree']):
            logger.info("Exporting phylogenetic tree...")
            self.export(self.qiime_path(dfs.q2_core, dfs.q2_tree_outputs['rooted_tree']),
                        join(export_dir, 'tree'))
        logger.info("Exporting DADA2 stats...")
        self.export(self.input()['dada2'][2].path, join(export_dir, 'dada2_stats'))
        if self.dry_run:
            touch_outputs(self.output())


class export_diversity(base_luigi_task):
    """
    every available alpha vector merged into one wide table, one row per sample.
    """

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(core_metrics=core_metrics(**kwargs),
                    indices=alpha_indices(**kwargs),
                    depth=sampling_depth(**kwargs))

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_export, dfs.diversity_all_file))

    def run(self):
        from static.q2_function import read_alpha_vector, merge_alpha_vectors
        locations = dict(core_metrics=self.qiime_path(dfs.q2_core_metrics),
                         indices=self.qiime_path(dfs.q2_diversity_indices))
        diversity_dir = self.qiime_path(dfs.q2_export, 'diversity_all')
        valid_path(diversity_dir, check_odir=True)
        depth = int(read_value(self.input()['depth'][0].path, 0))

        vectors = {}
        for name, (location, fname) in self.get_config_params('alpha_vectors').items():
            qza = join(locations[location], fname)
            if not exists(qza) and not self.dry_run:
                continue
            tmp_dir = join(diversity_dir, f"{name}_temp")
            self.run_q2(f"{self.get_config_params('qiime2_p')} tools export --input-path {qza} --output-path {tmp_dir}")
            if self.dry_run:
                continue
            ofile = join(diversity_dir, f"{name}.tsv")
            read_alpha_vector(join(tmp_dir, 'alpha-diversity.tsv'), name).to_csv(ofile, sep='\t')
            shutil.rmtree(tmp_dir, ignore_errors=True)
            vectors[name] = ofile

        if self.dry_run:
            touch_outputs(self.output())
            return
        df_merged = merge_alpha_vectors(vectors, depth)
        df_merged.to_csv(self.output().path, sep='\t')
        logger.info("Diversity table: %s (%s samples, %s columns)",
                    self.output().path, df_merged.shape[0], df_merged.shape[1])


class merge_asv_taxonomy(base_luigi_task):

    def requires(self):
        return export_core(**self.get_kwargs())

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_export, dfs.asv_taxonomy_file))

    def run(self):
        from static.q2_function import merge_abundance_taxonomy
        if self.dry_run:
            touch_outputs(self.output())
            return
        merged = merge_abundance_taxonomy(self.input()['feature_table'].path,
                                          self.input()['taxonomy'].path)
        merged.to_csv(self.output().path, sep='\t')
        logger.info("ASV + taxonomy table: %s (%s ASVs)", self.output().path, merged.shape[0])


class sample_read_depths(base_luigi_task):

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(core=export_core(**kwargs),
                    depth=sampling_depth(**kwargs))

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_export, dfs.sample_depths_file))

    def run(self):
        from static.q2_function import sample_depths_table
        if self.dry_run:
            touch_outputs(self.output())
            return
        depth = int(read_value(self.input()['depth'][0].path))
        depths_df = sample_depths_table(self.input()['core']['feature_table'].path, depth)
        depths_df.to_csv(self.output().path, sep='\t', index=False)
        logger.info("Sample depths: %s", self.output().path)


class export_rarefaction_data(base_luigi_task):
    """
    csv tables stored inside the rarefaction visualizations.
    """

    def requires(self):
        return alpha_rarefaction(**self.get_kwargs())

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_export, 'rarefaction_data', 'rarefaction_files.txt'))

    def run(self):
        from static.q2_function import extract_visualization_csv
        odir = os.path.dirname(self.output().path)
        valid_path(odir, check_odir=True)
        with open(self.input().path) as f1:
            qzvs = [_ for _ in f1.read().split('\n') if _]
        ofiles = []
        for qzv in qzvs:
            if self.dry_run or not exists(qzv):
                continue
            ofiles += extract_visualization_csv(qzv, odir)
        ofiles = sorted(set(ofiles))
        logger.info("Rarefaction data: %s csv", len(ofiles))
        with open(self.output().path, 'w') as f1:
            for ofile in ofiles:
                f1.write(f"{basename(ofile)}\n")


class final_report(base_luigi_task):

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(core=export_core(**kwargs),
                    depth=sampling_depth(**kwargs),
                    diversity=export_diversity(**kwargs),
                    asv_taxonomy=merge_asv_taxonomy(**kwargs),
                    sample_depths=sample_read_depths(**kwargs),
                    rarefaction=export_rarefaction_data(**kwargs),
                    tree=build_tree(**kwargs))

    def output(self):
        return luigi.LocalTarget(self.qiime_path(dfs.q2_export, dfs.report_file))

    def run(self):
        if self.dry_run:
            touch_outputs(self.output())
            return
        from static.diagnostic import feature_counts, dada2_global_stats
        from static.q2_function import read_dada2_stats, list_fasta_ids
        num_asvs, num_samples = feature_counts(self.input()['core']['feature_table'].path)
        num_seqs = len(list_fasta_ids(self.input()['core']['rep_seqs'].path))
        stats = dada2_global_stats(read_dada2_stats(self.input()['core']['dada2_stats'].path))
        depth = read_value(self.input()['depth'][0].path)
        max_depth = read_value(self.input()['depth'][1].path)

        lines = ["DADA2 GLOBAL STATS",
                 f"  Reads input    : {stats['input']:>10,} (100.0%)",
                 f"  Reads filtered : {stats['filtered']:>10,} ({stats['filter_pct']:>5.1f}%)",
                 f"  Reads merged   : {stats['merged']:>10,} ({stats['merge_pct']:>5.1f}%)",
                 f"  Reads final    : {stats['final']:>10,} ({stats['final_pct']:>5.1f}%)",
                 "",
                 "MAIN RESULTS",
                 f"  ASVs                : {num_asvs}",
                 f"  Representative seqs : {num_seqs}",
                 f"  Samples             : {num_samples}",
                 f"  Rarefaction depth   : {depth} reads",
                 f"  Max depth           : {max_depth} reads",
                 "",
                 "MAIN FILES"]
        for name, target in sorted(self.input()['core'].items()):
            lines.append(f"  {name:<20}: {target.path}")
        lines += [f"  {'ASV + taxonomy':<20}: {self.input()['asv_taxonomy'].path}",
                  f"  {'alpha diversity':<20}: {self.input()['diversity'].path}",
                  f"  {'sample depths':<20}: {self.input()['sample_depths'].path}",
                  f"  {'rarefaction data':<20}: {os.path.dirname(self.input()['rarefaction'].path)}"]
        if has_tree(self.input()['tree']):
            lines.append(f"  {'tree':<20}: {self.qiime_path(dfs.q2_export, 'tree', 'tree.nwk')}")

        with open(self.output().path, 'w') as f1:
            f1.write('\n'.join(lines) + '\n')
        for line in lines:
            logger.info(line)
