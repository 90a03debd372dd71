#!/usr/bin/env python3
# Generates synthetic applicant profiles deterministically for load and property tests.
import csv, os
import numpy as np

VEHICLES = ["sedan","suv","truck","sports","luxury","economy"]
AREAS    = ["urban","suburban","rural"]
COVERAGE = ["basic","standard","comprehensive","premium"]
GENDERS  = ["male","female"]

FIELDS = ["age","years_licensed","accidents","violations","vehicle_type","vehicle_value","vehicle_year",
          "location","credit_score","annual_mileage","coverage_level","gender"]

def sample_applicant(rng):
    age = int(rng.integers(16, 90))
    lic = int(rng.integers(0, age - 14 + 1))
    acc = int(rng.poisson(0.3))
    vio = int(rng.poisson(0.5))
    veh = str(rng.choice(VEHICLES, p=[0.35,0.25,0.12,0.06,0.07,0.15]))
    val = round(float(rng.lognormal(10.1, 0.5)), 2)      # ~27k median
    yr  = int(rng.integers(2000, 2025))
    loc = str(rng.choice(AREAS)) if rng.random() < 0.5 else f"{int(rng.integers(0, 100000)):05d}"
    cs  = int(np.clip(rng.normal(690, 80), 300, 850))
    mi  = int(np.clip(rng.normal(12000, 5000), 0, 60000))
    cov = str(rng.choice(COVERAGE, p=[0.2,0.4,0.3,0.1]))
    gen = str(rng.choice(GENDERS))
    return dict(zip(FIELDS, [age, lic, acc, vio, veh, val, yr, loc, cs, mi, cov, gen]))

def generate_applicants(n, seed=2025):
    rng = np.random.default_rng(seed)
    return [sample_applicant(rng) for _ in range(n)]

def main(n=5000):
    os.makedirs("data", exist_ok=True)
    with open("data/applicants.csv","w",newline="") as f:
        w=csv.DictWriter(f, fieldnames=FIELDS)
        w.writeheader()
        for row in generate_applicants(n):
            w.writerow(row)
    print("Wrote data/applicants.csv")

if __name__=="__main__": main()
