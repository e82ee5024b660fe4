#!/usr/bin/env python3
"""Benchmark the enqueue -> execute round trip with and without encryption."""

import argparse
import timeit

from encrypted_args import CipherProvider, Job, JobRegistry, MiddlewareChain, configure
from encrypted_args.logging import setup_logging


class JobWithoutEncryption(Job):
    def perform(self, arg_1, arg_2, arg_3):
        pass


class JobWithEncryption(Job):
    encrypted_args = True

    def perform(self, arg_1, arg_2, arg_3):
        pass


def build_round_trip(client_chain, server_chain):
    """Return a callable running one job through both chains."""

    def round_trip(job_class):
        job = {"class": job_class.__qualname__, "args": ["foo", "bar", "baz"]}
        client_chain.invoke(job_class, job, "default", lambda: None)
        worker = job_class()
        server_chain.invoke(worker, job, "default", lambda: worker.perform(*job["args"]))

    return round_trip


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("-n", "--iterations", type=int, default=10000)
    parser.add_argument("--log-level", default="warning")
    options = parser.parse_args()
    setup_logging(options.log_level)

    client_chain = MiddlewareChain("client")
    server_chain = MiddlewareChain("server")
    configure(
        client_chain=client_chain,
        server_chain=server_chain,
        provider=CipherProvider("benchmark-secret"),
        registry=JobRegistry(),
    )
    round_trip = build_round_trip(client_chain, server_chain)

    for label, job_class in (
        ("No Encryption:  ", JobWithoutEncryption),
        ("With Encryption:", JobWithEncryption),
    ):
        elapsed = timeit.timeit(lambda: round_trip(job_class), number=options.iterations)
        print(f"{label} {elapsed:.3f}s ({options.iterations} jobs)")


if __name__ == "__main__":
    main()
