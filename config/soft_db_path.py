from os.path import *
from os import popen
import os,sys

def get_project_root():
    from os.path import dirname
    project_root = dirname(dirname(__file__))
    return project_root

def env_exe(name):

    bin_dir = dirname(sys.executable)
    f = join(bin_dir,name)
    if exists(f):
        return f
    f = popen(f'which {name} 2> /dev/null').read().strip('\n')
    return f

def conda_exe(name, env):
    """
    executable found beside the interpreter or on PATH, otherwise wrapped by `conda run`
    so each tool keeps living in its own environment.
    """
    f = env_exe(name)
    if f:
        return f
    return f"conda run --no-capture-output -n {env} {name}"

project_root = get_project_root()
############################################################
# conda environments
############################################################
fastqc_env = 'fastqc'
multiqc_env = 'multiqc'
trimmomatic_env = 'trimmomatic'
qiime_env = "qiime2-amplicon-2024.10"

############################################################
# exe path
############################################################
fastqc_path = conda_exe('fastqc', fastqc_env)
multiqc_path = conda_exe('multiqc', multiqc_env)
trimmomatic_path = conda_exe('trimmomatic', trimmomatic_env)
qiime2_p = conda_exe('qiime', qiime_env)
biom_p = conda_exe('biom', qiime_env)

adapter_file = "/nvme/bio/data_fungi/valormicro_nc/99_softwares/adapters/sequences.fasta"
classifier_path = "/nvme/bio/data_fungi/BioIndic_La_Reunion_Island_seawater_four_month_SED/05_QIIME2/Original_reads_16S/taxonomy/16S/Classifier.qza"
