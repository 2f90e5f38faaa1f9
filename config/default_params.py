"""
Default parameters of the ExPLOI workflow.

A file passed with `--config` is executed as python and overrides the
names defined here. Dict values are updated key by key, others replaced.
Overriding `THREADS` alone also updates every entry of `thread_params`
that the same file does not set itself.
"""
from config import soft_db_path

THREADS = 16
# values following THREADS, a name or a (dict name, key) pair
thread_params = ["fastqc_thread",
                 "trimmomatic_thread",
                 ("dada2_args", "n_threads")]

############################################################
# samples
# raw file key (contained in the file name) -> sample-id
samples = {
    "BL_PCR_Jourand_S151": "BL_PCR_Jourand",
    "BAR253117_S114": "T1_CO",
    "BAR253118_S115": "T2_CO",
    "BAR253119_S116": "T1_HO",
    "BAR253120_S117": "T2_HO",
    "BAR253121_S118": "T1_HE",
    "BAR253122_S119": "T2_HE",
    "BAR253123_S120": "T1_CIAN",
    "BAR253124_S121": "T2_CIAN",
    "BAR253125_S122": "T1_HIAN",
    "BAR253126_S123": "MP1",
    "BAR253127_S124": "MP2",
    "BAR253128_S125": "MP3",
    "BAR253129_S126": "MP4",
    "BAR253130_S127": "MP5",
    "BAR253131_S128": "MP6",
    "BAR253132_S129": "MP7",
}
negative_controls = ["BL_PCR_Jourand"]
sample_group = 'Sample'
negative_control_group = 'Negative_Control'

############################################################
# executables
qiime2_p = soft_db_path.qiime2_p
biom_p = soft_db_path.biom_p
fastqc_p = soft_db_path.fastqc_path
multiqc_p = soft_db_path.multiqc_path
trimmomatic_p = soft_db_path.trimmomatic_path
classifier_path = soft_db_path.classifier_path

############################################################
# QC & trimming
fastqc_thread = THREADS
trimmomatic_thread = THREADS
trimmomatic_args = dict(adapter_file=soft_db_path.adapter_file,
                        seed_mismatches=2,
                        palindrome_clip=30,
                        simple_clip=10,
                        leading=20,
                        trailing=20,
                        window_size=4,
                        window_quality=20,
                        minlen=100)

############################################################
# DADA2, MiSeq 2x250bp on the V3-V4 amplicon (341F-805R)
dada2_args = dict(trim_left_f=17,
                  trim_left_r=21,
                  trunc_len_f=0,
                  trunc_len_r=0,
                  max_ee_f=5,
                  max_ee_r=5,
                  trunc_q=0,
                  min_overlap=8,
                  chimera_method='consensus',
                  n_threads=THREADS)

############################################################
# phylogeny
phylogeny_thread = 1

############################################################
# diversity
min_depth = 1000
depth_quantile = 0.1
rarefaction_args = dict(min_depth=10,
                        steps=20)
alpha_metrics = ["simpson",
                 "simpson_e",
                 "chao1",
                 "ace",
                 "goods_coverage",
                 "fisher_alpha",
                 "berger_parker_d",
                 "gini_index",
                 "brillouin_d",
                 "strong",
                 "mcintosh_d",
                 "mcintosh_e",
                 "margalef",
                 "menhinick"]
# exported vector name -> (directory key, file name)
alpha_vectors = {"observed_asvs": ("core_metrics", "observed_features_vector.qza"),
                 "shannon": ("core_metrics", "shannon_vector.qza"),
                 "pielou_evenness": ("core_metrics", "evenness_vector.qza"),
                 "faith_pd": ("core_metrics", "faith_pd_vector.qza"),
                 "simpson": ("indices", "simpson_vector.qza"),
                 "simpson_evenness": ("indices", "simpson_e_vector.qza"),
                 "chao1": ("indices", "chao1_vector.qza"),
                 "ace": ("indices", "ace_vector.qza"),
                 "goods_coverage": ("indices", "goods_coverage_vector.qza"),
                 "fisher_alpha": ("indices", "fisher_alpha_vector.qza"),
                 "berger_parker": ("indices", "berger_parker_d_vector.qza"),
                 "gini_index": ("indices", "gini_index_vector.qza"),
                 "brillouin": ("indices", "brillouin_d_vector.qza"),
                 "strong": ("indices", "strong_vector.qza"),
                 "mcintosh_d": ("indices", "mcintosh_d_vector.qza"),
                 "mcintosh_e": ("indices", "mcintosh_e_vector.qza"),
                 "margalef": ("indices", "margalef_vector.qza"),
                 "menhinick": ("indices", "menhinick_vector.qza")}

############################################################
# diagnostics
amplicon_length = 460
n_reads_check = 1000
low_read_threshold = 1000
expected_asv_count = 4700
critical_asv_count = 500
