import sys
from os.path import join, dirname, basename,exists
sys.path.insert(0, dirname(dirname(__file__)))

from config import *
from tasks.basic_tasks import visulize_seq
import logging

logger = logging.getLogger('luigi-interface')


class write_metadata_file(base_luigi_task):
    """
    fixed sample-id -> group table used by every metadata based filter.
    """

    def output(self):
        return luigi.LocalTarget(self.base_path(dfs.metadata_file))

    def run(self):
        from static.utils import get_groups, write_metadata
        groups = get_groups(self.get_config_params('samples'),
                            self.get_config_params('negative_controls'),
                            sample_group=self.get_config_params('sample_group'),
                            negative_control_group=self.get_config_params('negative_control_group'))
        write_metadata(self.output().path, groups)
        logger.info("Metadata created: %s (%s samples)", self.output().path, len(groups))


# give some default parameter
class fastqc(base_luigi_task):
    sampleid = luigi.Parameter()
    PE1 = luigi.Parameter()
    PE2 = luigi.Parameter()
    status = luigi.Parameter(default="before")

    def requires(self):
        kwargs = self.get_kwargs()
        if self.status == 'before':
            "raw reads, it doesn't need any tasks"
            return
        elif self.status == 'after':
            return QC_trimmomatic(sampleid=self.sampleid,
                                  PE1=self.PE1,
                                  PE2=self.PE2,
                                  **kwargs)

    def output(self):
        if self.status == 'before':
            odir = self.base_path(dfs.qc_dir)
            infiles = [str(self.PE1), str(self.PE2)]
        elif self.status == 'after':
            odir = self.base_path(dfs.post_clean_qc_dir)
            infiles = [self.input()[0].path, self.input()[1].path]
        else:
            raise Exception("status of fastqc must be `before` or `after`, not %s" % self.status)
        ofiles = ["%s_fastqc.zip" % basename(f).rsplit('.', maxsplit=2)[0]
                  for f in infiles]
        # ofiles is a list of ouput of R1 & R2
        return [luigi.LocalTarget(join(odir, f))
                for f in ofiles]

    def run(self):
        if self.status == 'before':
            R1 = self.PE1
            R2 = self.PE2
        else:
            R1 = self.input()[0].path
            R2 = self.input()[1].path

        infiles = [R1,R2]
        odir=dirname(self.output()[0].path)

        if not self.dry_run:
            valid_path(infiles, check_size=True)
        valid_path(odir, check_odir=True)
        fastqc_cmd = "{exe_path} {in_files} -t {thread} -o {odir} --quiet"

        cmd = fastqc_cmd.format(exe_path=self.get_config_params('fastqc_p'),
                                in_files=' '.join(infiles),
                                thread=self.get_config_params('fastqc_thread'),
                                odir=odir)
        run_cmd(cmd, dry_run=self.dry_run, log_file=self.get_log_path())

        if self.dry_run:
            touch_outputs(self.output())


class multiqc(base_luigi_task):
    status = luigi.Parameter()

    def requires(self):
        kwargs = self.get_kwargs()
        tasks = {}
        for sid,(R1,R2) in self.get_samples().items():
            tasks[sid] = fastqc(PE1=R1,
                                PE2=R2,
                                status=self.status,
                                sampleid=sid,
                                **kwargs)
        return tasks

    def output(self):
        if self.status == 'before':
            indir = self.base_path(dfs.qc_dir)
        elif self.status == 'after':
            indir = self.base_path(dfs.post_clean_qc_dir)
        else:
            raise Exception("status of multiqc must be `before` or `after`, not %s" % self.status)
        filename = basename(indir)
        target_file = join(indir, filename + '.html')
        return luigi.LocalTarget(target_file)

    def run(self):
        if self.dry_run:
            touch_outputs(self.output())
        else:
            indir = dirname(self.output().path)
            filename = basename(indir)

            valid_path(indir, check_odir=True)
            multiqc_cmd = "{exe_path} {indir} --outdir {odir} --filename {fn} --force -q {extra_str}"
            cmd = multiqc_cmd.format(exe_path=self.get_config_params('multiqc_p'),
                                     indir=indir,
                                     odir=indir,
                                     fn=filename,
                                     extra_str='')
            run_cmd(cmd, dry_run=self.dry_run, log_file=self.get_log_path())


class QC_trimmomatic(base_luigi_task):
    """
    adapter clipping and sliding window trimming of one read pair.
    only the paired outputs are kept for the downstream analysis.
    """
    sampleid = luigi.Parameter()
    PE1 = luigi.Parameter()
    PE2 = luigi.Parameter()

    def output(self):
        odir = self.base_path(dfs.cleaned_dir)

        ofile_name1 = join(odir,
                           "{}_R1{}".format(str(self.sampleid), dfs.paired_suffix))
        ofile_name2 = join(odir,
                           "{}_R2{}".format(str(self.sampleid), dfs.paired_suffix))
        return [luigi.LocalTarget(ofile_name1),
                luigi.LocalTarget(ofile_name2)]

    def run(self):
        valid_path(self.output()[0].path, check_ofile=1)
        # auto make output dir
        sample_name = str(self.sampleid)
        odir = dirname(self.output()[0].path)
        args = self.get_config_params('trimmomatic_args')
        steps = "ILLUMINACLIP:{adapter_file}:{seed_mismatches}:{palindrome_clip}:{simple_clip} LEADING:{leading} TRAILING:{trailing} SLIDINGWINDOW:{window_size}:{window_quality} MINLEN:{minlen}".format(**args)

        cmdline = "{trimmomatic} PE -threads {thread} -phred33 {input1} {input2} {ofile1} {outdir}/{PE1_id}{unpaired} {ofile2} {outdir}/{PE2_id}{unpaired} {steps}".format(
            trimmomatic=self.get_config_params('trimmomatic_p'),
            input1=self.PE1,
            input2=self.PE2,
            PE1_id=sample_name + "_R1",
            PE2_id=sample_name + "_R2",
            unpaired=dfs.unpaired_suffix,
            ofile1=self.output()[0].path,
            ofile2=self.output()[1].path,
            outdir=odir,
            steps=steps,
            thread=self.get_config_params('trimmomatic_thread'))

        logger.info("Processing %s (%s)...", sample_name, basename(str(self.PE1)))
        run_cmd(cmdline,
                dry_run=self.dry_run,
                log_file=self.get_log_path())
        if self.dry_run:
            touch_outputs(self.output())


############################################################
# For qiime2 preprocessing.

class import_data(base_luigi_task):

    def requires(self):
        kwargs = self.get_kwargs()
        tasks = {}
        if self.reads == 'raw':
            return tasks
        for sid,(R1,R2) in self.get_samples().items():
            tasks[sid]= QC_trimmomatic(sampleid=sid,
                                       PE1=R1,
                                       PE2=R2,
                                       **kwargs)
        return tasks

    def output(self):
        ofile = self.qiime_path(dfs.q2_core, dfs.q2_demux)
        return luigi.LocalTarget(ofile)

    def run(self):
        collect_params = dict(ids=[],
                              r1_files=[],
                              r2_files=[])
        if self.reads == 'raw':
            pairs = self.get_samples()
        else:
            pairs = {sid: (self.input()[sid][0].path, self.input()[sid][1].path)
                     for sid in self.input()}
        for sid,(r1_path,r2_path) in pairs.items():
            collect_params["ids"].append(sid)
            collect_params["r1_files"].append(r1_path)
            collect_params["r2_files"].append(r2_path)

        from static.utils import write_manifest
        manifest = self.base_path(dfs.manifest_file)
        write_manifest(opath=manifest,
                       **collect_params)
        logger.info("Manifest created: %s samples", len(collect_params['ids']))
        valid_path(self.output().path, check_ofile=1)
        cmd = "{qiime2_p} tools import \
          --type 'SampleData[PairedEndSequencesWithQuality]' \
          --input-path {manifest} \
          --output-path {ofile} \
          --input-format PairedEndFastqManifestPhred33V2".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            manifest=manifest,
            ofile=self.output().path, )
        self.run_q2(cmd)
        if self.dry_run:
            touch_outputs(self.output())


class view_demux(visulize_seq):
    def requires(self):
        return import_data(**self.get_kwargs())
