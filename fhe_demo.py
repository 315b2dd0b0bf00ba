"""
BFV / BGV demo: encrypt two values, multiply, relinearize, decrypt.

    python fhe_demo.py --scheme bfv 12 8
    python fhe_demo.py --generate --depth 1 --t 256 12 8
"""

import argparse
import logging
import time

from toyfhe import BFVParams, BFVScheme, BGVParams, BGVScheme, bgv_modulus_chain
from toyfhe.primes import ntt_prime_above_bits


def build_bfv(args):
    if args.generate:
        params = BFVParams.generate(args.t, eval_mult_count=args.depth,
                                    relin_window=args.window)
    else:
        q = ntt_prime_above_bits(args.q_bits, args.n)
        params = BFVParams.from_moduli(args.n, q, args.t, relin_window=args.window)
    return BFVScheme(params, seed=args.seed)


def build_bgv(args):
    q = bgv_modulus_chain(args.n, args.t, [args.q_bits])[0]
    params = BGVParams.from_moduli(args.n, q, args.t, relin_window=args.window)
    return BGVScheme(params, seed=args.seed)


def run(fhe, val1, val2):
    fhe.key_generation()
    fhe.generate_relin_key()

    print(f"Encrypting {val1} and {val2}...")
    ct1, ct2 = fhe.encrypt(val1), fhe.encrypt(val2)

    ct_sum = fhe.add(ct1, ct2)
    res_sum = fhe.decrypt(ct_sum).coeffs[0]

    print("Multiplying...")
    start = time.time()
    ct3 = fhe.multiply(ct1, ct2)

    print("Relinearizing (with Decomposition)...")
    ct3 = fhe.relinearize(ct3)
    elapsed = time.time() - start

    res = fhe.decrypt(ct3).coeffs[0]
    t = fhe.params.p
    print(f"Sum:    {res_sum} (expected {(val1 + val2) % t})")
    print(f"Result: {res} (expected {(val1 * val2) % t})")
    print(f"Multiply + relinearize: {elapsed:.3f}s")

    if isinstance(fhe, BFVScheme):
        print(f"Noise budget: fresh {fhe.noise_budget(ct1):.1f} bits, "
              f"after multiply {fhe.noise_budget(ct3):.1f} bits")

    return res == (val1 * val2) % t


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("values", nargs=2, type=int)
    parser.add_argument("--scheme", choices=["bfv", "bgv"], default="bfv")
    parser.add_argument("--n", type=int, default=16, help="ring dimension")
    parser.add_argument("--t", type=int, default=257, help="plaintext modulus")
    parser.add_argument("--q-bits", type=int, default=60)
    parser.add_argument("--window", type=int, default=8, help="relinearization window (bits)")
    parser.add_argument("--generate", action="store_true",
                        help="BFV only: pick N and q from the security tables")
    parser.add_argument("--depth", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    print("=" * 60)
    print(f"{args.scheme.upper()} DEMO")
    print("=" * 60)
    fhe = build_bfv(args) if args.scheme == "bfv" else build_bgv(args)
    ok = run(fhe, *args.values)
    print(" SUCCESS!" if ok else " FAILED.")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
