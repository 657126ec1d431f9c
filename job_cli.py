#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Job Management CLI - Command-line interface for translation jobs

Usage:
    translator-jobs submit --input book.epub --source-lang en --target-lang de --provider deepl
    translator-jobs list
    translator-jobs status <job_id>
    translator-jobs cancel <job_id>
    translator-jobs process [--workers N] [--continuous]
    translator-jobs providers
"""

import sys
import asyncio
import argparse
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from config.settings import settings
from core.job_queue import JobQueue, JobPriority
from core.job_store import JobStore, JobStatus
from core.translation_service import TranslationService


def format_timestamp(ts: Optional[float]) -> str:
    """Format timestamp for display"""
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def format_duration(start: Optional[float], end: Optional[float]) -> str:
    """Format duration"""
    if start is None or end is None:
        return "-"
    duration = end - start
    if duration < 60:
        return f"{duration:.1f}s"
    elif duration < 3600:
        return f"{duration/60:.1f}m"
    else:
        return f"{duration/3600:.1f}h"


def resolve_job_id(service: TranslationService, job_id: str) -> str:
    """Full job ID for an exact ID or an unambiguous prefix"""
    job = service.get_job(job_id) or service.store.find_by_prefix(job_id)
    return job.job_id if job else job_id


@contextmanager
def open_service(config=None):
    """Store, open queue and service for one command"""
    config = config or settings
    store = JobStore(config.db_path)
    with JobQueue(
        config.db_path,
        store=store,
        backoff_base=config.job_backoff_base,
        max_attempts=config.job_max_attempts,
    ) as queue:
        yield TranslationService(store, queue, config)


def cmd_submit(args):
    """Submit a new translation job"""
    input_file = Path(args.input).resolve()
    if not input_file.exists():
        print(f"❌ Input file not found: {input_file}")
        return 1

    priority = JobPriority[args.priority.upper()]

    with open_service() as service:
        job_id = service.submit_job(
            owner_id=args.owner,
            source_file=str(input_file),
            source_lang=args.source_lang,
            target_lang=args.target_lang,
            provider=args.provider,
            file_format=args.format,
            priority=priority,
        )
        job = service.get_job(job_id)

    if job.status == JobStatus.FAILED:
        print(f"❌ Job rejected: [{job.failure_reason}] {job.error_message}")
        print(f"   Job ID: {job_id}")
        return 1

    print("✅ Job submitted successfully!")
    print(f"   Job ID: {job.job_id}")
    print(f"   Priority: {job.priority}")
    print(f"   Input: {job.source_file} ({job.file_format})")
    print(f"   Languages: {job.source_lang} → {job.target_lang} via {job.provider}")
    print(f"\nRun 'translator-jobs process' to start processing.")

    return 0


def cmd_list(args):
    """List jobs"""
    with open_service() as service:
        jobs = service.list_jobs(owner_id=args.owner, status=args.status, limit=args.limit)

    if not jobs:
        print("No jobs found.")
        return 0

    # Print header
    print("\n" + "="*110)
    print(f"{'JOB ID':<34} {'FILE':<25} {'STATUS':<12} {'PROVIDER':<10} {'PROGRESS':<10} {'CREATED':<20}")
    print("="*110)

    for job in jobs:
        name = (job.original_file_name or "")[:25]
        print(f"{job.job_id:<34} {name:<25} {job.status:<12} "
              f"{job.provider:<10} {str(job.progress) + '%':<10} {format_timestamp(job.created_at):<20}")

    print("="*110)
    print(f"Total: {len(jobs)} jobs")
    return 0


def cmd_status(args):
    """Show detailed job status"""
    with open_service() as service:
        job = service.get_job(resolve_job_id(service, args.job_id))

    if not job:
        print(f"❌ Job not found: {args.job_id}")
        return 1

    print("\n" + "="*70)
    print(f"📋 JOB: {job.original_file_name}")
    print("="*70)

    print(f"\n🆔 Identification:")
    print(f"   Job ID: {job.job_id}")
    print(f"   Owner: {job.owner_id}")
    print(f"   Status: {job.status}")
    print(f"   Priority: {job.priority}")

    print(f"\n📂 Files:")
    print(f"   Input: {job.source_file} ({job.file_format})")
    print(f"   Output: {job.output_file or '-'}")

    print(f"\n🌐 Translation:")
    print(f"   Languages: {job.source_lang} → {job.target_lang}")
    print(f"   Provider: {job.provider}")

    print(f"\n📊 Progress:")
    print(f"   Overall: {job.progress}%")
    print(f"   Chunks: {job.processed_chunks}/{job.total_chunks}")

    print(f"\n⏱️  Timing:")
    print(f"   Created: {format_timestamp(job.created_at)}")
    print(f"   Updated: {format_timestamp(job.updated_at)}")
    print(f"   Completed: {format_timestamp(job.completed_at)}")
    if job.completed_at:
        print(f"   Duration: {format_duration(job.created_at, job.completed_at)}")

    if job.failure_reason:
        print(f"\n❌ Error:")
        print(f"   Reason: {job.failure_reason}")
        print(f"   {(job.error_message or '')[:200]}")

    print("="*70 + "\n")
    return 0


def cmd_cancel(args):
    """Cancel a job"""
    with open_service() as service:
        canceled = service.cancel_job(resolve_job_id(service, args.job_id))

    if canceled:
        print(f"✅ Job canceled: {args.job_id}")
        return 0
    print(f"❌ Cannot cancel job: {args.job_id}")
    print("   (Job may not exist or is already finished)")
    return 1


def cmd_delete(args):
    """Delete a job and its output"""
    with open_service() as service:
        job = service.get_job(resolve_job_id(service, args.job_id))
        if not job:
            print(f"❌ Job not found: {args.job_id}")
            return 1

        # Confirm deletion
        if not args.force:
            response = input(f"Delete job '{job.original_file_name}' ({job.job_id})? [y/N] ")
            if response.lower() != 'y':
                print("Cancelled.")
                return 0

        deleted = service.delete_job(job.job_id)

    if deleted:
        print(f"✅ Job deleted: {args.job_id}")
        return 0
    print(f"❌ Cannot delete job: {args.job_id}")
    return 1


def cmd_process(args):
    """Process jobs from queue"""
    from core.batch_processor import run_batch_processor

    config = settings
    if args.workers:
        config = settings.model_copy(update={"max_workers": args.workers})

    print("🚀 Starting batch processor...")
    print(f"   Workers: {config.max_workers}")
    print(f"   Continuous mode: {args.continuous}")

    store = JobStore(config.db_path)
    try:
        with JobQueue(
            config.db_path,
            store=store,
            backoff_base=config.job_backoff_base,
            max_attempts=config.job_max_attempts,
        ) as queue:
            asyncio.run(run_batch_processor(queue, store, config, continuous=args.continuous))
    except KeyboardInterrupt:
        print("\n🛑 Stopped by user")

    return 0


def cmd_cleanup(args):
    """Prune finished queue entries"""
    with open_service() as service:
        deleted = service.cleanup_queue()
    print(f"✅ Pruned {deleted} finished queue entries")
    return 0


def cmd_providers(args):
    """List registered providers and whether they are reachable"""
    from providers import PROVIDER_INFO, create_provider

    async def check_all():
        results = {}
        for provider_id in PROVIDER_INFO:
            provider = create_provider(provider_id, settings)
            results[provider_id] = await provider.is_available()
        return results

    availability = asyncio.run(check_all())

    print("\n" + "="*70)
    print(f"{'ID':<12} {'NAME':<28} {'OFFLINE':<9} {'AVAILABLE':<10}")
    print("="*70)
    for provider_id, info in PROVIDER_INFO.items():
        available = "yes" if availability.get(provider_id) else "no"
        offline = "yes" if info.offline else "no"
        print(f"{provider_id:<12} {info.display_name:<28} {offline:<9} {available:<10}")
    print("="*70)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="translator-jobs",
        description="Job Management CLI for Document Translation",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Submit command
    submit_parser = subparsers.add_parser('submit', help='Submit a new translation job')
    submit_parser.add_argument('--input', '-i', required=True, help='Input file path')
    submit_parser.add_argument('--source-lang', default='en', help='Source language (default: en)')
    submit_parser.add_argument('--target-lang', required=True, help='Target language')
    submit_parser.add_argument('--provider', default=None, help='Provider id (default: settings)')
    submit_parser.add_argument('--format', default=None, help='Declared format (default: from extension)')
    submit_parser.add_argument('--priority', default='normal',
                               choices=[p.name.lower() for p in JobPriority], help='Job priority')
    submit_parser.add_argument('--owner', default='cli', help='Owner id')

    # List command
    list_parser = subparsers.add_parser('list', help='List jobs')
    list_parser.add_argument('--status', choices=[s.value for s in JobStatus], help='Filter by status')
    list_parser.add_argument('--owner', default=None, help='Filter by owner')
    list_parser.add_argument('--limit', type=int, default=50, help='Max jobs to show')

    # Status command
    status_parser = subparsers.add_parser('status', help='Show job status')
    status_parser.add_argument('job_id', help='Job ID (or unique prefix)')

    # Cancel command
    cancel_parser = subparsers.add_parser('cancel', help='Cancel a job')
    cancel_parser.add_argument('job_id', help='Job ID (or unique prefix)')

    # Delete command
    delete_parser = subparsers.add_parser('delete', help='Delete a job and its output')
    delete_parser.add_argument('job_id', help='Job ID (or unique prefix)')
    delete_parser.add_argument('--force', '-f', action='store_true', help='Skip confirmation')

    # Process command
    process_parser = subparsers.add_parser('process', help='Process jobs from queue')
    process_parser.add_argument('--workers', type=int, default=None, help='Worker count')
    process_parser.add_argument('--continuous', action='store_true',
                                help='Keep polling after the queue drains')

    # Cleanup command
    subparsers.add_parser('cleanup', help='Prune finished queue entries')

    # Providers command
    subparsers.add_parser('providers', help='List providers')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Route to command handlers
    commands = {
        'submit': cmd_submit,
        'list': cmd_list,
        'status': cmd_status,
        'cancel': cmd_cancel,
        'delete': cmd_delete,
        'process': cmd_process,
        'cleanup': cmd_cleanup,
        'providers': cmd_providers,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    print(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
