import sys
import shutil
import logging
from os.path import join, dirname
from subprocess import CalledProcessError

sys.path.insert(0, dirname(dirname(__file__)))

from config import luigi, dfs, valid_path, touch_outputs
from tasks.basic_tasks import base_luigi_task, tabulate_seq, tabulate_metadata
from tasks.for_preprocess import import_data, write_metadata_file

logger = logging.getLogger('luigi-interface')


class run_dada2(base_luigi_task):

    def requires(self):
        return import_data(**self.get_kwargs())

    def output(self):
        ofiles = list(map(luigi.LocalTarget,
                          [self.qiime_path(dfs.q2_core, dfs.q2_table),
                           self.qiime_path(dfs.q2_core, dfs.q2_rep_seqs),
                           self.qiime_path(dfs.q2_core, dfs.q2_dada2_stats)]
                          ))
        return ofiles

    def run(self):
        valid_path(self.output()[0].path, check_ofile=1)
        extra_str = self.batch_get_config_params('dada2_args')

        cmd = """{qiime2_p} dada2 denoise-paired --i-demultiplexed-seqs {input_file} --o-table {profiling_tab} --o-representative-sequences {rep_seq} --o-denoising-stats {stats_file} --verbose""".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            input_file=self.input().path,
            profiling_tab=self.output()[0].path,
            rep_seq=self.output()[1].path,
            stats_file=self.output()[2].path)

        cmd += extra_str
        logger.info("Denoising with DADA2:%s", extra_str)
        self.run_q2(cmd)
        if self.dry_run:
            touch_outputs(self.output())


class view_dada2_stats(tabulate_metadata):
    input_index = 2

    def requires(self):
        return run_dada2(**self.get_kwargs())


############################################################

class decontaminate(base_luigi_task):
    """
    remove ASVs seen in the negative controls, then drop the controls.

    A negative control left without reads makes the control filter fail, in
    which case (as when no contaminant is found) the tables are copied forward
    untouched.
    """

    def requires(self):
        kwargs = self.get_kwargs()
        return dict(dada2=run_dada2(**kwargs),
                    metadata=write_metadata_file(**kwargs))

    def output(self):
        return [luigi.LocalTarget(self.qiime_path(dfs.q2_core, dfs.q2_table_decontam)),
                luigi.LocalTarget(self.qiime_path(dfs.q2_core, dfs.q2_rep_seqs_clean)),
                luigi.LocalTarget(self.qiime_path(dfs.q2_core, dfs.q2_table_final))]

    def copy_forward(self, table, rep_seqs):
        table_decontam, rep_seqs_clean, _ = [_.path for _ in self.output()]
        if self.dry_run:
            return
        shutil.copyfile(table, table_decontam)
        shutil.copyfile(rep_seqs, rep_seqs_clean)

    def run(self):
        from static.q2_function import contaminant_ids
        qiime2_p = self.get_config_params('qiime2_p')
        biom_p = self.get_config_params('biom_p')
        table, rep_seqs, _ = [_.path for _ in self.input()['dada2']]
        metadata = self.input()['metadata'].path
        table_decontam, rep_seqs_clean, table_final = [_.path for _ in self.output()]
        neg_table = self.qiime_path(dfs.q2_core, dfs.q2_neg_table)
        neg_export = self.qiime_path(dfs.q2_export, 'neg-controls')
        neg_group = self.get_config_params('negative_control_group')
        sample_group = self.get_config_params('sample_group')
        valid_path(self.qiime_path(dfs.q2_visual), check_odir=True)

        try:
            self.run_q2(f"""{qiime2_p} feature-table filter-samples --i-table {table} --m-metadata-file {metadata} --p-where "[group]='{neg_group}'" --o-filtered-table {neg_table}""")
            neg_control_empty = False
        except CalledProcessError:
            neg_control_empty = True

        if neg_control_empty:
            logger.warning("Negative control is empty (0 reads): no contamination detected, no ASV filtered")
            self.copy_forward(table, rep_seqs)
        else:
            logger.info("Negative control contains reads, filtering contaminants...")
            self.run_q2(f"{qiime2_p} feature-table summarize --i-table {neg_table} --o-visualization {self.qiime_path(dfs.q2_visual, 'neg-controls-summary.qzv')}")
            self.run_q2(f"{qiime2_p} tools export --input-path {neg_table} --output-path {neg_export}")
            self.run_q2(f"{biom_p} convert -i {neg_export}/feature-table.biom -o {neg_export}/{dfs.biom_tsv} --to-tsv")
            ids_file = join(neg_export, dfs.contamination_ids)
            if self.dry_run:
                ids = ['dry_run']
            else:
                ids = contaminant_ids(join(neg_export, dfs.biom_tsv), ids_file)
            logger.info("%s contaminant ASVs detected", len(ids))
            if not ids:
                self.copy_forward(table, rep_seqs)
            else:
                self.run_q2(f"{qiime2_p} feature-table filter-features --i-table {table} --m-metadata-file {ids_file} --p-exclude-ids --o-filtered-table {table_decontam}")
                self.run_q2(f"{qiime2_p} feature-table filter-seqs --i-data {rep_seqs} --i-table {table_decontam} --o-filtered-data {rep_seqs_clean}")
                logger.info("%s contaminant ASVs removed", len(ids))

        self.run_q2(f"""{qiime2_p} feature-table filter-samples --i-table {table_decontam} --m-metadata-file {metadata} --p-where "[group]='{sample_group}'" --o-filtered-table {table_final}""")
        self.run_q2(f"{qiime2_p} feature-table summarize --i-table {table_final} --o-visualization {self.qiime_path(dfs.q2_visual, 'table-final-summary.qzv')} --m-sample-metadata-file {metadata}")
        logger.info("Decontamination complete. Final table: %s", table_final)
        if self.dry_run:
            touch_outputs(self.output())


class view_rep_seq_clean(tabulate_seq):
    def requires(self):
        return decontaminate(**self.get_kwargs())
