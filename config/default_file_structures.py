############################################################
# project layout, all relative to the base (output) directory
raw_data_dir = '01_raw_data'
qc_dir = '02_quality_check'
cleaned_dir = '03_cleaned_data'
post_clean_qc_dir = '04_post_clean_quality_check'
qiime_dir = '05_QIIME2'
tmp_dir = 'tmp'
mafft_tmp_dir = 'tmp_mafft'

metadata_file = 'metadata_ExPLOI.tsv'
manifest_file = 'manifest_ExPLOI.txt'

############################################################
# raw / cleaned read naming
raw_r1_suffix = '_R1_001.fastq.gz'
raw_r2_suffix = '_R2_001.fastq.gz'
raw_lane_r1_suffix = '_L001_R1_001.fastq.gz'
paired_suffix = '_paired.fastq.gz'
unpaired_suffix = '_unpaired.fastq.gz'

############################################################
# q2 named (inside qiime_dir)
q2_core = 'core'
q2_visual = 'visual'
q2_export = 'export'
q2_core_metrics = 'core-metrics-results'
q2_diversity_indices = 'diversity_indices'

q2_demux = 'demux.qza'
q2_table = 'table.qza'
q2_rep_seqs = 'rep-seqs.qza'
q2_dada2_stats = 'dada2-stats.qza'
q2_neg_table = 'neg-controls-table.qza'
q2_table_decontam = 'table-decontam.qza'
q2_rep_seqs_clean = 'rep-seqs-clean.qza'
q2_table_final = 'table-final.qza'
q2_taxonomy = 'taxonomy.qza'

q2_tree_outputs = dict(alignment='aligned-rep-seqs.qza',
                       masked_alignment='masked-aligned-rep-seqs.qza',
                       tree='unrooted-tree.qza',
                       rooted_tree='rooted-tree.qza')

# output name -> file name of `qiime diversity core-metrics(-phylogenetic)`
core_metrics_outputs = dict(rarefied_table='rarefied_table.qza',
                            observed_features_vector='observed_features_vector.qza',
                            shannon_vector='shannon_vector.qza',
                            evenness_vector='evenness_vector.qza',
                            jaccard_distance_matrix='jaccard_distance_matrix.qza',
                            bray_curtis_distance_matrix='bray_curtis_distance_matrix.qza',
                            jaccard_pcoa_results='jaccard_pcoa_results.qza',
                            bray_curtis_pcoa_results='bray_curtis_pcoa_results.qza',
                            jaccard_emperor='jaccard_emperor.qzv',
                            bray_curtis_emperor='bray_curtis_emperor.qzv')
phylogenetic_metrics_outputs = dict(faith_pd_vector='faith_pd_vector.qza',
                                    unweighted_unifrac_distance_matrix='unweighted_unifrac_distance_matrix.qza',
                                    weighted_unifrac_distance_matrix='weighted_unifrac_distance_matrix.qza',
                                    unweighted_unifrac_pcoa_results='unweighted_unifrac_pcoa_results.qza',
                                    weighted_unifrac_pcoa_results='weighted_unifrac_pcoa_results.qza',
                                    unweighted_unifrac_emperor='unweighted_unifrac_emperor.qzv',
                                    weighted_unifrac_emperor='weighted_unifrac_emperor.qzv')

############################################################
# exported tables (inside qiime_dir/export)
contamination_ids = 'contamination_ids.txt'
biom_tsv = 'feature-table.tsv'
sampling_depth_file = 'sampling_depth.txt'
max_depth_file = 'max_depth.txt'
diversity_all_file = 'diversity_indices_all.tsv'
asv_taxonomy_file = 'ASV_abundance_taxonomy.tsv'
sample_depths_file = 'sample_read_depths_final.tsv'
report_file = 'pipeline_report.txt'
