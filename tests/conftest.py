from __future__ import annotations

import pandas as pd
import pytest

from rcm_dashboard.data import ClaimDataset, parse_claims_csv

TODAY = pd.Timestamp("2024-06-15")

CLAIMS_CSV = """id,date,client,payer,billed,paid,adjustment,adjusted_billed,deniedAmount,denied,reason,claim_status,is_clean_claim,charge_date,billing_date,aging,total_claims,first_pass_claims,targetgcr,baselinegcr
1,2024-01-05,A,Medicare,100,90,10,,0,False,Contractual,paid,1,2024-01-03,2024-01-08,,10,9,95,80
2,2024-01-20,A,Aetna,200,150,20,170,50,False,Contractual,Paid,True,2024-01-18,2024-01-25,,20,15,,

3,2024-02-10,B,Medicare,300,0,0,,300,True,Coding error,DENIED,0,2024-02-08,2024-02-20,40,5,2,96,
4,2024-03-15,B,,400,360,40,,0,False,,paid,1,2024-03-10,bad-date,,0,0,,
5,,B,Aetna,50,oops,0,,0,,Missing info,,0,,,,0,0,,
"""


@pytest.fixture
def today() -> pd.Timestamp:
    return TODAY


@pytest.fixture
def dataset() -> ClaimDataset:
    return parse_claims_csv(CLAIMS_CSV, source="fixture.csv", today=TODAY)


@pytest.fixture
def claims(dataset: ClaimDataset) -> pd.DataFrame:
    return dataset.frame


@pytest.fixture
def claims_file(tmp_path):
    path = tmp_path / "claims.csv"
    path.write_text(CLAIMS_CSV, encoding="utf-8")
    return path
