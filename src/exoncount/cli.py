import argparse

from .classes import FilterConfig, DEFAULT_MIN_MAPQ, DEFAULT_REQUIRED_FLAGS, DEFAULT_FILTERED_FLAGS
from .count import count_exon_reads


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = FilterConfig(
        min_mapping_quality=args.minmapqual,
        required_flags=args.required_flag,
        filtered_flags=args.filtered_flag,
    )
    return count_exon_reads(
        bam_path=args.bamfile,
        gtf_path=args.gtf,
        config=config,
        log_level=args.log_level,
        progress_every=args.progress_every,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="exoncount",
        description="Count unmapped, mapped and exon-mapped reads in a BAM file."
    )
    p.add_argument(
        "-b", "--bamfile",
        required=True,
        help="Input BAM file."
    )
    p.add_argument(
        "-g", "--gtf",
        required=True,
        help="Gene annotation GTF (.gtf or .gtf.gz); only 'exon' features are used."
    )
    p.add_argument(
        "-q", "--minmapqual",
        type=int,
        default=DEFAULT_MIN_MAPQ,
        help=f"Minimum mapping quality of mapped reads (default {DEFAULT_MIN_MAPQ})."
    )
    p.add_argument(
        "-f", "--required-flag",
        dest="required_flag",
        type=int,
        default=DEFAULT_REQUIRED_FLAGS,
        help=f"Only count reads with all of these flag bits set (default {DEFAULT_REQUIRED_FLAGS})."
    )
    p.add_argument(
        "-F", "--filtered-flag",
        dest="filtered_flag",
        type=int,
        default=DEFAULT_FILTERED_FLAGS,
        help=f"Skip reads with any of these flag bits set (default {DEFAULT_FILTERED_FLAGS})."
    )
    # Debugging assistance
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity (default: INFO)."
    )
    p.add_argument(
        "--progress-every",
        type=int,
        default=1_000_000,
        help="Log progress every N alignments (default 1000000, 0 disables)."
    )
    return p

if __name__ == "__main__":
    raise SystemExit(main())
