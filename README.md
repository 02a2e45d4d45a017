# nanocov

nanocov reads a BAM file and counts read coverage per position. It writes the
counts to a TSV file, prints an average for each chromosome and a global
average, and draws coverage plots with matplotlib. It can also write a short
tab-separated summary of the reads in the style of cramino.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Usage

```
nanocov -i sample.bam -o coverage.tsv
```

nanocov expects an index file beside the input: for `sample.bam` that is
`sample.bam.bai`. If it is missing, nanocov prints a message and exits with
status 1. The index is only checked for; it is not read (see below).

The TSV has a header line and then one line per counted position, sorted by
chromosome name and then position:

```
#chromosome	position	count
chr1	10001	12
```

Without a BED file, every reference sequence in the BAM header is processed.
To limit the work to given regions:

```
nanocov -i sample.bam -b regions.bed
```

Or give whole-chromosome ranges, which are also used as the x-axis range of
the per-chromosome plots:

```
nanocov -i sample.bam --chrom-bed chromosomes.bed
```

When both are given, the regions from `-b` are counted, and the ranges from
`--chrom-bed` set the plot ranges. BED lines starting with `#`, blank lines
and lines with fewer than three fields are skipped; a start or end that is
not an unsigned 32-bit integer is an error.

Each mapped record that overlaps a region adds one count at each position
starting at its 1-based alignment start, for as many positions as the record
has CIGAR operations.

### Options

| Option | Meaning |
| --- | --- |
| `-i, --input` | Input BAM file (required) |
| `-b, --bed` | BED file of regions to count |
| `--chrom-bed` | BED file of full chromosome ranges |
| `-t, --threads` | Number of worker threads (default: chosen by Python) |
| `-o, --output` | Output TSV path (default `coverage.tsv`) |
| `-c, --chunk-size` | Accepted and stored; not used (default 10000) |
| `--svg` | Write the per-chromosome plots as SVG instead of PNG |
| `--theme` | Plot colours: `latte`, `frappe`, `nord`, `gruvbox`; others give `latte` |
| `--show-zeros` | Fill gaps between covered bins with zero-coverage bins |
| `--no-plot` | Skip the multi-chromosome plot (per-chromosome plots are still drawn) |
| `--no-multi-plot` | Skip the multi-chromosome plot |
| `--log-scale` | Logarithmic y-axis on the multi-chromosome plot |
| `--cramino` | Also write a cramino-like summary |
| `--cramino-output` | Path for that summary (default: input path with `.cramino` suffix) |
| `--genome-size` | Genome size in bp, used for the mean coverage in the summary |

Invalid arguments exit with status 2. A file that cannot be read or a
malformed BAM or BED file prints `Error: ...` and exits with status 1.

### Plots

Each chromosome with coverage gets `<output stem>.<chrom>.png` (or `.svg`)
next to the output TSV. Coverage is averaged in bins whose size follows the
width of the plotted range, from 1 bp up to 1 Mb. Side panels show read
statistics, binned coverage statistics and per-base coverage statistics.

When more than one chromosome is covered, nanocov also writes
`<output stem>.multi_chrom.png`, a bar chart of the mean coverage of each
canonical chromosome (1–22, X, Y, M, MT, with or without a `chr` prefix).

### Cramino-like summary

```
nanocov -i sample.bam --cramino --genome-size 3000000000
```

The report lists the file name, the number of alignments and reads, the
yield in Gb (in total and for reads longer than 25 kb), the mean coverage
(bases divided by `--genome-size`, or 0.00 without it), N50, N75, the median
and mean read length, the path and the file's modification time in UTC.

## Library use

- `nanocov.bed.parse_bed` maps each chromosome in a BED file to a list of
  `(start, end)` pairs.
- `nanocov.bam.BamReader` reads the header and records of a BAM file;
  `records()` iterates them in order and `query(chrom, start, end)` yields
  those overlapping a 1-based inclusive range.
- `nanocov.readstats.extract_read_stats` and `summarize_reads` give N50,
  read length and read quality statistics.
- `nanocov.stats.calculate_per_base_stats`, `calculate_coverage_stats` and
  `calculate_chrom_stats` summarise coverage values.
- `nanocov.coverage.count_region_coverage`, `merge_coverage`,
  `write_coverage_tsv` and `run_coverage` do the counting and output.
- `nanocov.coverage_plot.plot_per_base_coverage`,
  `plot_per_base_coverage_with_range` and `set_theme`, and
  `nanocov.multi_chrom.plot_all_chromosomes` draw the plots.
- `nanocov.cramino.generate_cramino_output` and `CraminoOutput` write the
  summary report.

## Limitations

- The `.bai` index is not read. Region queries scan the whole BAM file from
  the start, so each region costs a full pass over the file.
- CRAM and SAM input are not supported; only BGZF-compressed BAM.
- `--chunk-size` has no effect.