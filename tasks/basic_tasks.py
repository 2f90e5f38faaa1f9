import luigi
from toolkit import run_cmd, valid_path, touch_outputs
from os.path import *
from copy import deepcopy
import os,sys,types

_config_cache = {}


class base_luigi_task(luigi.Task):
    odir = luigi.Parameter()
    tab = luigi.Parameter(default=None)
    raw_dir = luigi.Parameter(default=None)
    reads = luigi.ChoiceParameter(choices=['trimmed', 'raw'], default='trimmed')
    dry_run = luigi.BoolParameter(default=False)
    log_path = luigi.Parameter(default=None)
    config = luigi.Parameter(default=None)

    def get_log_path(self):
        base_log_path = self.log_path
        if base_log_path is not None:
            return base_log_path

    def get_kwargs(self):
        kwargs = dict(odir=self.odir,
                      tab=self.tab,
                      raw_dir=self.raw_dir,
                      reads=self.reads,
                      dry_run=self.dry_run,
                      log_path=self.log_path,
                      config=self.config)
        return kwargs

    def get_config(self):
        if self.config in _config_cache:
            self.config_params = _config_cache[self.config]
            return self.config_params
        sys.path.insert(0,dirname(dirname(__file__)))
        import config.default_params as default_params
        from static.utils import parse_param
        params = {}
        for aparam in dir(default_params):
            v = getattr(default_params,aparam)
            if '__' in aparam or isinstance(v,types.ModuleType): continue
            params[aparam] = deepcopy(v)
        if self.config:
            new_params = {}
            parse_param(self.config, new_params)
            for aparam,v in new_params.items():
                if '__' in aparam or aparam not in params: continue
                if type(params[aparam])==dict:
                    params[aparam].update(v)
                else:
                    params[aparam] = v
            if 'THREADS' in new_params:
                for p in params['thread_params']:
                    if type(p) == str:
                        if p not in new_params:
                            params[p] = params['THREADS']
                    elif p[1] not in new_params.get(p[0], {}):
                        params[p[0]][p[1]] = params['THREADS']
        _config_cache[self.config] = params
        self.config_params = params
        return params

    def get_config_params(self,arg):
        if not hasattr(self,'config_params'):
            self.get_config()
        if type(arg) == str:
            return self.config_params[arg]
        else:
            return self.config_params[arg[0]][arg[1]]

    def batch_get_config_params(self,name,new_key={}):
        from static.utils import batch_params
        params_dict = dict(self.get_config_params(name))
        for k,v in new_key.items():
            params_dict[k] = v
        return batch_params(params_dict)

    ############################################################
    # paths
    def base_path(self, *args):
        return join(str(self.odir), *args)

    def qiime_path(self, *args):
        from config import default_file_structures as dfs
        return self.base_path(dfs.qiime_dir, *args)

    def get_samples(self):
        """
        sample-id -> (R1, R2) of the raw reads, from the input tab when given,
        otherwise by matching the raw data directory against the sample mapping.
        """
        from input_parser import fileparser, scan_raw_data
        from config import default_file_structures as dfs
        if self.tab:
            return fileparser(self.tab).pairs()
        raw_dir = self.raw_dir if self.raw_dir else self.base_path(dfs.raw_data_dir)
        return scan_raw_data(raw_dir,
                             self.get_config_params('samples'),
                             r1_suffix=dfs.raw_r1_suffix,
                             r2_suffix=dfs.raw_r2_suffix,
                             lane_suffix=dfs.raw_lane_r1_suffix)

    def get_env(self, tmpdir=None):
        from config import default_file_structures as dfs
        env = os.environ.copy()
        env['PYTHONWARNINGS'] = 'ignore'
        env['TMPDIR'] = tmpdir if tmpdir else self.base_path(dfs.tmp_dir)
        valid_path(env['TMPDIR'], check_odir=True)
        return env

    def run_q2(self, cmd, tmpdir=None):
        "qiime2/biom commands, executed with the pipeline TMPDIR"
        run_cmd(cmd,
                dry_run=self.dry_run,
                log_file=self.get_log_path(),
                env=self.get_env(tmpdir))


class visulize_seq(base_luigi_task):
    """
    mainly for visualizing SequencesWithQuality qza
    """

    def output(self):
        from config import default_file_structures as dfs
        return luigi.LocalTarget(self.qiime_path(dfs.q2_visual,
                                                 basename(self.input().path).replace(".qza", ".qzv")))

    def run(self):
        valid_path(self.output().path, check_ofile=1)
        cmd = "{qiime2_p} demux summarize --i-data {input_f} --o-visualization {output_f}".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            input_f=self.input().path,
            output_f=self.output().path)
        self.run_q2(cmd)
        if self.dry_run:
            touch_outputs(self.output())


class tabulate_seq(base_luigi_task):
    """
    mainly for visualizing representative sequence
    """

    def output(self):
        from config import default_file_structures as dfs
        return luigi.LocalTarget(self.qiime_path(dfs.q2_visual,
                                                 basename(self.input()[1].path).replace(".qza", ".qzv")))

    def run(self):
        valid_path(self.output().path, check_ofile=1)
        cmd = "{qiime2_p} feature-table tabulate-seqs --i-data {input_f} --o-visualization {output_f}".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            input_f=self.input()[1].path,
            output_f=self.output().path)
        self.run_q2(cmd)
        if self.dry_run:
            touch_outputs(self.output())


class tabulate_metadata(base_luigi_task):
    """
    `qiime metadata tabulate` of one of the inputs
    """
    input_index = 0

    def output(self):
        from config import default_file_structures as dfs
        return luigi.LocalTarget(self.qiime_path(dfs.q2_visual,
                                                 basename(self.input()[self.input_index].path).replace(".qza", ".qzv")))

    def run(self):
        valid_path(self.output().path, check_ofile=1)
        cmd = "{qiime2_p} metadata tabulate --m-input-file {input_f} --o-visualization {output_f}".format(
            qiime2_p=self.get_config_params('qiime2_p'),
            input_f=self.input()[self.input_index].path,
            output_f=self.output().path)
        self.run_q2(cmd)
        if self.dry_run:
            touch_outputs(self.output())
