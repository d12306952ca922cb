"""ESMO NSCLC guideline flowcharts: static decision trees.

Five hand-authored variants, one per guideline branch. Every variant is
an id -> record map rooted at ``nsclc`` whose ``children`` lists form a
tree. The variants differ in how much teaching text they carry:

  stage-i                 plain definitions
  stage-ii                what / why / who / when / where / how breakdown
  stage-iii               long-form notes, history, mechanism, pearls
  stage-iv-oncogene       definitions plus key trial citations
  stage-iv-non-oncogene   definitions plus key trial citations

Evidence tags use the ESMO [level, grade] notation, e.g. "[I, A]".
"""

from typing import Dict, List, Optional

from src.models import FlowchartInfo, FlowchartNodeRecord


# ═══════════════════════════════════════════════════════════════════════
# 1. STAGE I: early stage management
# ═══════════════════════════════════════════════════════════════════════

STAGE_I_NODES: Dict[str, Dict] = {
    "nsclc": {
        "label": "Stage I NSCLC",
        "category": "stage",
        "definition": "Tumour ≤4 cm without nodal involvement or distant metastasis "
                      "(T1-T2a N0 M0). Surgery is the treatment of choice for fit patients.",
        "children": ["preop-evaluation"],
    },
    "preop-evaluation": {
        "label": "Preoperative Evaluation\nMDT Assessment",
        "category": "decision",
        "definition": "Multidisciplinary review of staging (PET-CT, brain imaging when indicated), "
                      "lung function (FEV1, DLCO) and cardiovascular risk.",
        "children": ["medically-operable"],
    },
    "medically-operable": {
        "label": "Medically Operable?",
        "category": "decision",
        "definition": "Operability is judged on predicted postoperative lung function, "
                      "cardiopulmonary exercise testing and comorbidities.",
        "children": ["surgery", "inoperable"],
    },
    "surgery": {
        "label": "YES - Surgery",
        "category": "treatment",
        "definition": "Anatomical resection with curative intent.",
        "children": ["lobectomy", "sublobar-resection", "vats-rats"],
    },
    "lobectomy": {
        "label": "Lobectomy",
        "category": "treatment",
        "evidence": "[I, A]",
        "definition": "Removal of the involved lobe; the preferred standard resection.",
    },
    "sublobar-resection": {
        "label": "Sublobar Resection",
        "category": "treatment",
        "evidence": "[I, A]",
        "definition": "Segmentectomy or wedge resection for peripheral tumours ≤2 cm "
                      "with adequate margins.",
    },
    "vats-rats": {
        "label": "VATS/RATS",
        "category": "treatment",
        "evidence": "[I, A]",
        "definition": "Video- or robot-assisted thoracic surgery; minimally invasive approach "
                      "with fewer complications and shorter stay.",
        "children": ["lymph-node-dissection"],
    },
    "lymph-node-dissection": {
        "label": "Lymph Node Dissection",
        "category": "treatment",
        "evidence": "[III, A]",
        "definition": "Systematic sampling or dissection of at least three mediastinal "
                      "stations (always including subcarinal) and three hilar/intrapulmonary stations.",
        "children": ["r0-resection", "r1-resection"],
    },
    "r0-resection": {
        "label": "R0 Resection\nComplete",
        "category": "outcome",
        "definition": "No residual tumour at the margins.",
        "children": ["surveillance"],
    },
    "r1-resection": {
        "label": "R1 Resection\nMicroscopic residual",
        "category": "outcome",
        "definition": "Microscopic tumour at a resection margin.",
        "children": ["port"],
    },
    "surveillance": {
        "label": "Surveillance\nFollow-up imaging",
        "category": "outcome",
        "definition": "Chest CT every 6 months for 2 years, then annually.",
    },
    "port": {
        "label": "PORT",
        "category": "treatment",
        "evidence": "[II, B]",
        "definition": "Re-resection when feasible, otherwise postoperative radiotherapy.",
    },
    "inoperable": {
        "label": "NO - Inoperable",
        "category": "decision",
        "definition": "Patient unfit for, or declining, surgery.",
        "children": ["sbrt"],
    },
    "sbrt": {
        "label": "SBRT",
        "category": "treatment",
        "evidence": "[II, A]",
        "definition": "Stereotactic body radiotherapy delivering ablative doses in a few fractions.",
        "children": ["sbrt-indications", "ipf-patients"],
    },
    "sbrt-indications": {
        "label": "Indications:\nSevere COPD, Elderly/Frail,\nPatient preference",
        "category": "outcome",
        "definition": "Typical SBRT candidates are patients with poor lung reserve, frailty, "
                      "or who prefer a non-surgical option.",
    },
    "ipf-patients": {
        "label": "IPF patients\nMDT discussion required",
        "category": "decision",
        "evidence": "[III, B]",
        "definition": "Idiopathic pulmonary fibrosis raises the risk of fatal pneumonitis "
                      "after SBRT; benefit and risk are weighed by the MDT.",
    },
}


# ═══════════════════════════════════════════════════════════════════════
# 2. STAGE II: locally advanced, resectable
# ═══════════════════════════════════════════════════════════════════════

STAGE_II_NODES: Dict[str, Dict] = {
    "nsclc": {
        "label": "Stage II NSCLC",
        "category": "stage",
        "what": "Tumour 4-7 cm or with ipsilateral hilar nodes (N1), no distant spread.",
        "why": "Curable with resection, but relapse risk justifies adjuvant therapy.",
        "who": "Patients with complete staging workup.",
        "children": ["mdt-assessment"],
    },
    "mdt-assessment": {
        "label": "MDT Assessment\nStaging workup complete",
        "category": "decision",
        "what": "Joint review by thoracic surgery, oncology, radiotherapy, radiology and pathology.",
        "why": "Resectability and fitness are decided together before any treatment starts.",
        "who": "Every patient with stage II disease.",
        "when": "After PET-CT and invasive mediastinal staging where indicated.",
        "where": "Lung cancer multidisciplinary tumour board.",
        "how": "Review imaging, histology, lung function and performance status.",
        "children": ["resectable"],
    },
    "resectable": {
        "label": "Resectable?",
        "category": "decision",
        "what": "Can the tumour be removed completely with an anatomical resection?",
        "why": "Complete resection is the basis of cure in stage II.",
        "how": "Surgical assessment of tumour extent and predicted postoperative function.",
        "children": ["surgery", "unresectable"],
    },
    "surgery": {
        "label": "YES - Surgery",
        "category": "treatment",
        "evidence": "[I, A]",
        "what": "Curative-intent resection.",
        "who": "Medically operable patients with resectable disease.",
        "children": ["anatomical-resection"],
    },
    "anatomical-resection": {
        "label": "Anatomical Resection\nLobectomy or Pneumonectomy",
        "category": "treatment",
        "what": "Lobectomy, bilobectomy, sleeve resection or pneumonectomy.",
        "why": "Anatomical resection lowers local recurrence compared with wedge resection.",
        "how": "Sleeve lobectomy is preferred over pneumonectomy when oncologically adequate.",
        "children": ["nodal-dissection"],
    },
    "nodal-dissection": {
        "label": "Systematic Nodal Dissection",
        "category": "treatment",
        "evidence": "[III, A]",
        "what": "Removal of hilar and mediastinal lymph node stations.",
        "why": "Accurate pathological staging drives the adjuvant decision.",
        "where": "At least three mediastinal stations including subcarinal.",
        "children": ["adjuvant-assessment"],
    },
    "adjuvant-assessment": {
        "label": "Adjuvant Therapy Assessment",
        "category": "decision",
        "what": "Decide on systemic therapy after complete resection.",
        "why": "Adjuvant cisplatin-based chemotherapy improves 5-year survival by about 5%.",
        "when": "Within 6-8 weeks of surgery, once the patient has recovered.",
        "children": ["egfr-positive", "egfr-negative"],
    },
    "egfr-positive": {
        "label": "EGFR mutation+?\nTest after surgery",
        "category": "biomarker",
        "what": "Exon 19 deletion or L858R mutation on the resected specimen.",
        "why": "Defines eligibility for adjuvant osimertinib.",
        "how": "Tissue PCR or NGS on the surgical specimen.",
        "children": ["osimertinib-adjuvant"],
    },
    "osimertinib-adjuvant": {
        "label": "Osimertinib\nMCBS 4\n3 years adjuvant",
        "category": "drug",
        "evidence": "[I, A]",
        "what": "Third-generation EGFR TKI given for 3 years after surgery (± chemotherapy).",
        "why": "Marked disease-free and overall survival benefit in the ADAURA trial.",
        "who": "Resected stage IB-IIIA EGFR-mutant NSCLC.",
        "trials": ["ADAURA"],
        "children": ["surveillance"],
    },
    "surveillance": {
        "label": "Surveillance\nCT every 6 months x2y\nthen annually",
        "category": "outcome",
        "what": "Imaging follow-up for recurrence and second primaries.",
        "when": "Every 6 months for 2 years, then annually.",
    },
    "egfr-negative": {
        "label": "EGFR negative\nor unknown",
        "category": "biomarker",
        "what": "No sensitising EGFR mutation detected.",
        "children": ["platinum-chemo"],
    },
    "platinum-chemo": {
        "label": "Platinum-doublet ChT\n4 cycles",
        "category": "treatment",
        "evidence": "[I, A]",
        "what": "Cisplatin-based doublet, typically with vinorelbine or pemetrexed.",
        "why": "LACE meta-analysis: 5.4% absolute survival benefit at 5 years.",
        "who": "Fit patients with resected stage II-III disease.",
        "children": ["atezolizumab-adjuvant"],
    },
    "atezolizumab-adjuvant": {
        "label": "Consider Atezolizumab\nif PD-L1 ≥1%",
        "category": "drug",
        "evidence": "[II, B]",
        "what": "Anti-PD-L1 antibody for 1 year after adjuvant chemotherapy.",
        "who": "PD-L1 TC ≥1%, without EGFR/ALK alterations.",
        "trials": ["IMpower010"],
    },
    "unresectable": {
        "label": "NO - Unresectable",
        "category": "decision",
        "what": "Tumour cannot be completely resected or patient is inoperable.",
        "children": ["treat-as-stage-iii"],
    },
    "treat-as-stage-iii": {
        "label": "Treat as Stage III\nConcurrent CRT",
        "category": "treatment",
        "what": "Definitive chemoradiotherapy following the stage III pathway.",
        "how": "60 Gy in 30 fractions with concurrent platinum doublet.",
    },
}


# ═══════════════════════════════════════════════════════════════════════
# 3. STAGE III: locally advanced, unresectable
# ═══════════════════════════════════════════════════════════════════════

STAGE_III_NODES: Dict[str, Dict] = {
    "nsclc": {
        "label": "Unresectable Stage III NSCLC\n(IIIA-C)",
        "category": "stage",
        "notes": "A heterogeneous group ranging from bulky N2 disease to T4/N3 tumours. "
                 "Treatment intent remains curative.",
        "history": "Sequential chemotherapy then radiotherapy was standard until concurrent "
                   "regimens showed a survival advantage in the 1990s and 2000s.",
        "children": ["mdt-assessment"],
    },
    "mdt-assessment": {
        "label": "MDT Assessment\nPS, comorbidities, tumor burden",
        "category": "decision",
        "notes": "Performance status, weight loss, lung function and tumour volume "
                 "decide between concurrent and sequential approaches.",
        "clinical_pearl": "A planning-CT V20 above 35% signals high pneumonitis risk.",
        "children": ["fit-for-concurrent"],
    },
    "fit-for-concurrent": {
        "label": "Fit for concurrent CRT?",
        "category": "decision",
        "notes": "Concurrent delivery improves survival over sequential at the cost of "
                 "more oesophagitis and haematological toxicity.",
        "children": ["concurrent-crt", "sequential-crt"],
    },
    "concurrent-crt": {
        "label": "YES - Concurrent CRT",
        "category": "treatment",
        "evidence": "[I, A]",
        "notes": "Chemotherapy and radiotherapy delivered together.",
        "history": "Meta-analyses show about 4.5% absolute 5-year survival gain over sequential CRT.",
        "children": ["rt-60gy"],
    },
    "rt-60gy": {
        "label": "RT: 60 Gy\nOnce daily fractions",
        "category": "treatment",
        "evidence": "[I, A]",
        "notes": "60-66 Gy in 2 Gy daily fractions.",
        "history": "RTOG 0617 found no benefit, and worse survival, with dose escalation to 74 Gy.",
        "clinical_pearl": "Heart dose matters: keep cardiac exposure as low as achievable.",
        "children": ["platinum-concurrent"],
    },
    "platinum-concurrent": {
        "label": "Platinum-based doublet\n2-3 cycles concurrent",
        "category": "drug",
        "evidence": "[I, A]",
        "notes": "Cisplatin-etoposide, cisplatin-vinorelbine, carboplatin-paclitaxel weekly, "
                 "or cisplatin-pemetrexed for non-squamous histology.",
        "mechanism": "Platinum adducts cross-link DNA and sensitise tumour cells to radiation.",
        "children": ["biomarker-testing"],
    },
    "biomarker-testing": {
        "label": "Biomarker Testing\nEGFR, PD-L1",
        "category": "biomarker",
        "notes": "EGFR mutation and PD-L1 status select the consolidation therapy.",
        "clinical_pearl": "Request testing at diagnosis so the results are ready when CRT ends.",
        "children": ["egfr-mutant", "egfr-wild-type"],
    },
    "egfr-mutant": {
        "label": "EGFR mutation+",
        "category": "biomarker",
        "notes": "Exon 19 deletion or L858R.",
        "other_contexts": "Also drives adjuvant osimertinib in resected disease and first-line "
                          "TKI therapy in stage IV.",
        "children": ["osimertinib-consolidation"],
    },
    "osimertinib-consolidation": {
        "label": "Osimertinib\nConsolidation\nMCBS 4",
        "category": "drug",
        "evidence": "[I, A]",
        "notes": "Given until progression after CRT without progression.",
        "mechanism": "Irreversible inhibitor of sensitising and T790M-mutant EGFR.",
        "history": "LAURA showed a large progression-free survival benefit over placebo.",
        "trials": ["LAURA"],
        "children": ["surveillance"],
    },
    "surveillance": {
        "label": "Surveillance\nCT chest every 3-6 months",
        "category": "outcome",
        "notes": "Chest CT every 3-6 months for 2-3 years, then every 6-12 months.",
    },
    "egfr-wild-type": {
        "label": "EGFR wild-type",
        "category": "biomarker",
        "notes": "No sensitising EGFR mutation; immunotherapy consolidation applies.",
        "children": ["pdl1-positive"],
    },
    "pdl1-positive": {
        "label": "PD-L1 ≥1%?",
        "category": "decision",
        "notes": "EMA approval of durvalumab is restricted to PD-L1 TC ≥1%.",
        "children": ["durvalumab-consolidation"],
    },
    "durvalumab-consolidation": {
        "label": "Durvalumab\n1 year consolidation\nMCBS 4",
        "category": "drug",
        "evidence": "[I, A]",
        "notes": "Start within 42 days of the last radiotherapy fraction.",
        "mechanism": "Anti-PD-L1 antibody releasing T-cell inhibition; radiation-induced "
                     "PD-L1 upregulation supports the sequencing.",
        "history": "PACIFIC: 5-year overall survival 42.9% versus 33.4% with placebo.",
        "clinical_pearl": "Grade 2 pneumonitis warrants holding durvalumab and starting steroids.",
        "trials": ["PACIFIC"],
    },
    "sequential-crt": {
        "label": "NO - Sequential CRT",
        "category": "treatment",
        "evidence": "[I, A]",
        "notes": "For frail patients or large radiation fields.",
        "children": ["chemo-first"],
    },
    "chemo-first": {
        "label": "Chemotherapy first\n2-4 cycles",
        "category": "drug",
        "notes": "Platinum doublet to shrink the tumour before radiotherapy.",
        "children": ["rt-after-chemo"],
    },
    "rt-after-chemo": {
        "label": "Then RT\n60 Gy",
        "category": "treatment",
        "notes": "Radical radiotherapy after induction chemotherapy.",
        "children": ["durvalumab-sequential"],
    },
    "durvalumab-sequential": {
        "label": "Durvalumab\nif PD-L1 TC ≥1%",
        "category": "drug",
        "evidence": "[III, B]",
        "notes": "Extrapolated from PACIFIC; supported by the PACIFIC-6 safety data.",
        "trials": ["PACIFIC-6"],
    },
}


# ═══════════════════════════════════════════════════════════════════════
# 4. STAGE IV: oncogene-addicted
# ═══════════════════════════════════════════════════════════════════════

STAGE_IV_ONCOGENE_NODES: Dict[str, Dict] = {
    "nsclc": {
        "label": "Stage IV NSCLC\nOncogene-Addicted",
        "category": "stage",
        "definition": "Metastatic NSCLC driven by a targetable genomic alteration.",
        "children": ["molecular-testing"],
    },
    "molecular-testing": {
        "label": "Molecular Testing\nNGS Panel Recommended",
        "category": "biomarker",
        "definition": "Broad NGS on tissue or plasma covering EGFR, ALK, ROS1, BRAF, RET, "
                      "MET, KRAS, NTRK and HER2.",
        "children": ["egfr", "alk", "ros1", "braf", "other-drivers"],
    },
    "egfr": {
        "label": "EGFR mutation",
        "category": "biomarker",
        "definition": "Common sensitising mutations: exon 19 deletion and L858R.",
        "children": ["osimertinib-1l"],
    },
    "osimertinib-1l": {
        "label": "First-line:\nOsimertinib\nMCBS 5",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Third-generation EGFR TKI with CNS activity; preferred first-line option.",
        "trials": ["FLAURA", "FLAURA2"],
        "children": ["egfr-alternatives"],
    },
    "egfr-alternatives": {
        "label": "Alternatives:\nErlotinib, Gefitinib\nAfatinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "First- and second-generation EGFR TKIs.",
        "trials": ["IPASS", "EURTAC", "LUX-Lung 7"],
        "children": ["egfr-progression"],
    },
    "egfr-progression": {
        "label": "After progression:\nNGS for T790M\nResistance mechanisms",
        "category": "outcome",
        "definition": "Re-biopsy or liquid biopsy to identify T790M, MET amplification or "
                      "histological transformation.",
        "children": ["tki-beyond-progression"],
    },
    "tki-beyond-progression": {
        "label": "Continue TKI beyond progression\nif clinical benefit\nLocal therapy for oligoprogression",
        "category": "treatment",
        "evidence": "[III, A]",
        "definition": "Local ablative treatment of progressing sites while continuing the TKI.",
    },
    "alk": {
        "label": "ALK fusion",
        "category": "biomarker",
        "definition": "EML4-ALK and other ALK rearrangements, about 5% of NSCLC.",
        "children": ["alk-1l"],
    },
    "alk-1l": {
        "label": "First-line:\nAlectinib\nLorlatinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Next-generation ALK TKIs with high intracranial activity.",
        "trials": ["ALEX", "CROWN"],
        "children": ["brigatinib"],
    },
    "brigatinib": {
        "label": "Alternative:\nBrigatinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Second-generation ALK TKI.",
        "trials": ["ALTA-1L"],
        "children": ["alk-progression"],
    },
    "alk-progression": {
        "label": "After progression:\nSwitch ALK TKI\nbased on resistance",
        "category": "outcome",
        "definition": "Lorlatinib covers most single ALK resistance mutations including G1202R.",
    },
    "ros1": {
        "label": "ROS1 fusion",
        "category": "biomarker",
        "definition": "ROS1 rearrangements, about 1-2% of NSCLC.",
        "children": ["entrectinib-ros1"],
    },
    "entrectinib-ros1": {
        "label": "First-line:\nEntrectinib\n(CNS active)",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "ROS1/TRK/ALK inhibitor with intracranial penetration.",
        "trials": ["STARTRK-2"],
        "children": ["crizotinib-ros1"],
    },
    "crizotinib-ros1": {
        "label": "Alternative:\nCrizotinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Multi-kinase ALK/ROS1/MET inhibitor.",
        "trials": ["PROFILE 1001"],
    },
    "braf": {
        "label": "BRAF V600E",
        "category": "biomarker",
        "definition": "Class I BRAF mutation, about 2% of NSCLC.",
        "children": ["dabrafenib-trametinib"],
    },
    "dabrafenib-trametinib": {
        "label": "First-line:\nDabrafenib +\nTrametinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Combined BRAF and MEK inhibition.",
        "trials": ["BRF113928"],
    },
    "other-drivers": {
        "label": "Other\n(RET, MET, KRAS, NTRK)",
        "category": "biomarker",
        "definition": "Less frequent drivers, each with an approved targeted option.",
        "children": ["ret", "met", "kras-g12c", "ntrk"],
    },
    "ret": {
        "label": "RET:\nSelpercatinib\nPralsetinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Selective RET inhibitors for RET fusion-positive NSCLC.",
        "trials": ["LIBRETTO-001", "ARROW"],
    },
    "met": {
        "label": "MET ex14:\nCapmatinib\nTepotinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Selective MET inhibitors for MET exon 14 skipping mutations.",
        "trials": ["GEOMETRY mono-1", "VISION"],
    },
    "kras-g12c": {
        "label": "KRAS G12C:\nSotorasib\nAdagrasib",
        "category": "drug",
        "evidence": "[I, B]",
        "definition": "Covalent KRAS G12C inhibitors, used after first-line therapy.",
        "trials": ["CodeBreaK 100", "CodeBreaK 200", "KRYSTAL-1"],
    },
    "ntrk": {
        "label": "NTRK:\nLarotrectinib\nEntrectinib",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "TRK inhibitors with tissue-agnostic approvals.",
        "trials": ["NAVIGATE", "STARTRK-2"],
    },
}


# ═══════════════════════════════════════════════════════════════════════
# 5. STAGE IV: non-oncogene-addicted
# ═══════════════════════════════════════════════════════════════════════

STAGE_IV_NON_ONCOGENE_NODES: Dict[str, Dict] = {
    "nsclc": {
        "label": "Stage IV NSCLC\nNon-Oncogene Addicted",
        "category": "stage",
        "definition": "Metastatic NSCLC without a targetable driver alteration.",
        "children": ["pdl1-histology"],
    },
    "pdl1-histology": {
        "label": "PD-L1 Testing\n+ Histology Assessment",
        "category": "biomarker",
        "definition": "PD-L1 tumour proportion score (22C3, SP263 or 28-8) and histological subtype.",
        "children": ["non-squamous", "squamous", "ici-contraindicated"],
    },
    "non-squamous": {
        "label": "Non-Squamous",
        "category": "decision",
        "definition": "Adenocarcinoma and large-cell histology.",
        "children": ["nsq-pdl1-high", "nsq-pdl1-low", "nsq-pdl1-negative"],
    },
    "nsq-pdl1-high": {
        "label": "PD-L1 ≥50%",
        "category": "biomarker",
        "definition": "High PD-L1 expression.",
        "children": ["nsq-pembrolizumab"],
    },
    "nsq-pembrolizumab": {
        "label": "Pembrolizumab mono\nMCBS 5\nor Chemo-IO",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Single-agent anti-PD-1 or chemo-immunotherapy combination.",
        "trials": ["KEYNOTE-024", "IMpower110", "EMPOWER-Lung 1"],
        "children": ["nsq-alternatives"],
    },
    "nsq-alternatives": {
        "label": "Alternatives:\nAtezolizumab + Bev + Chemo\nNivolumab + Ipilimumab + Chemo",
        "category": "treatment",
        "definition": "Other approved first-line immunotherapy combinations.",
        "trials": ["IMpower150", "CheckMate 9LA"],
    },
    "nsq-pdl1-low": {
        "label": "PD-L1 1-49%",
        "category": "biomarker",
        "definition": "Intermediate PD-L1 expression.",
        "children": ["nsq-chemo-io"],
    },
    "nsq-chemo-io": {
        "label": "Chemo-IO\nPemetrexed-Platin\n+ Pembrolizumab",
        "category": "treatment",
        "evidence": "[I, A]",
        "definition": "Four cycles of platinum-pemetrexed with pembrolizumab, then "
                      "pemetrexed-pembrolizumab maintenance.",
        "trials": ["KEYNOTE-189"],
    },
    "nsq-pdl1-negative": {
        "label": "PD-L1 <1%",
        "category": "biomarker",
        "definition": "No detectable PD-L1 expression.",
        "children": ["nsq-chemo-io-or-chemo"],
    },
    "nsq-chemo-io-or-chemo": {
        "label": "Chemo-IO\nor Chemo alone\nif ICI contraindicated",
        "category": "treatment",
        "definition": "Chemo-immunotherapy remains preferred; chemotherapy alone when "
                      "immune checkpoint inhibitors are contraindicated.",
        "trials": ["KEYNOTE-189", "CheckMate 9LA"],
    },
    "squamous": {
        "label": "Squamous",
        "category": "decision",
        "definition": "Squamous cell carcinoma histology.",
        "children": ["sq-pdl1-high", "sq-pdl1-low"],
    },
    "sq-pdl1-high": {
        "label": "PD-L1 ≥50%",
        "category": "biomarker",
        "definition": "High PD-L1 expression.",
        "children": ["sq-pembrolizumab"],
    },
    "sq-pembrolizumab": {
        "label": "Pembrolizumab mono\nor Chemo-IO",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Single-agent anti-PD-1 or chemo-immunotherapy.",
        "trials": ["KEYNOTE-024"],
        "children": ["cemiplimab"],
    },
    "cemiplimab": {
        "label": "Alternative:\nCemiplimab-Platin ChT\nif PD-L1 ≥1%",
        "category": "drug",
        "evidence": "[I, A]",
        "definition": "Anti-PD-1 with platinum chemotherapy.",
        "trials": ["EMPOWER-Lung 3"],
    },
    "sq-pdl1-low": {
        "label": "PD-L1 <50%",
        "category": "biomarker",
        "definition": "Low or absent PD-L1 expression.",
        "children": ["sq-chemo-io"],
    },
    "sq-chemo-io": {
        "label": "Chemo-IO\nCarboplatin-Paclitaxel\n+ Pembrolizumab",
        "category": "treatment",
        "evidence": "[I, A]",
        "definition": "Carboplatin with paclitaxel or nab-paclitaxel plus pembrolizumab.",
        "trials": ["KEYNOTE-407"],
        "children": ["second-line"],
    },
    "second-line": {
        "label": "Second-line Treatment",
        "category": "decision",
        "definition": "Options at progression depend on prior immunotherapy exposure.",
        "children": ["second-line-io", "docetaxel"],
    },
    "second-line-io": {
        "label": "If no prior ICI:\nPembrolizumab\nor Nivolumab",
        "category": "drug",
        "definition": "Checkpoint inhibitor monotherapy after platinum chemotherapy.",
        "trials": ["KEYNOTE-010", "CheckMate 017", "CheckMate 057", "OAK"],
    },
    "docetaxel": {
        "label": "Docetaxel\n± Nintedanib (non-sq)\n± Ramucirumab",
        "category": "drug",
        "evidence": "[I, B]",
        "definition": "Taxane chemotherapy, optionally combined with an antiangiogenic agent.",
        "trials": ["REVEL", "LUME-Lung 1"],
    },
    "ici-contraindicated": {
        "label": "ICI Contraindicated",
        "category": "decision",
        "definition": "Active autoimmune disease, organ transplant or other contraindication "
                      "to immune checkpoint inhibitors.",
        "children": ["platinum-doublet"],
    },
    "platinum-doublet": {
        "label": "Platinum-doublet ChT\n4-6 cycles",
        "category": "treatment",
        "evidence": "[I, A]",
        "definition": "Histology-adapted platinum doublet chemotherapy.",
        "children": ["maintenance"],
    },
    "maintenance": {
        "label": "Maintenance:\nPemetrexed (non-sq)\nor Gemcitabine (sq)",
        "category": "outcome",
        "definition": "Continuation or switch maintenance in patients without progression.",
        "trials": ["PARAMOUNT"],
    },
}


# ═══════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════

FLOWCHART_ROOT = "nsclc"

_RAW_FLOWCHARTS: Dict[str, Dict] = {
    "stage-i": {
        "title": "Stage I NSCLC",
        "subtitle": "Early Stage Management",
        "nodes": STAGE_I_NODES,
    },
    "stage-ii": {
        "title": "Stage II NSCLC",
        "subtitle": "Locally Advanced - Resectable",
        "nodes": STAGE_II_NODES,
    },
    "stage-iii": {
        "title": "Stage III NSCLC",
        "subtitle": "Locally Advanced - Unresectable",
        "nodes": STAGE_III_NODES,
    },
    "stage-iv-oncogene": {
        "title": "Stage IV - Oncogene Addicted",
        "subtitle": "EGFR, ALK, ROS1, BRAF, etc.",
        "nodes": STAGE_IV_ONCOGENE_NODES,
    },
    "stage-iv-non-oncogene": {
        "title": "Stage IV - Non-Oncogene Addicted",
        "subtitle": "PD-L1 Stratified Treatment",
        "nodes": STAGE_IV_NON_ONCOGENE_NODES,
    },
}


def _to_records(raw: Dict[str, Dict]) -> Dict[str, FlowchartNodeRecord]:
    return {node_id: FlowchartNodeRecord(**data) for node_id, data in raw.items()}


FLOWCHARTS: Dict[str, Dict[str, FlowchartNodeRecord]] = {
    fc_id: _to_records(fc["nodes"]) for fc_id, fc in _RAW_FLOWCHARTS.items()
}

DEFAULT_FLOWCHART = "stage-i"


def list_flowcharts() -> List[FlowchartInfo]:
    """Tab metadata in display order."""
    return [
        FlowchartInfo(
            id=fc_id,
            title=fc["title"],
            subtitle=fc["subtitle"],
            node_count=len(fc["nodes"]),
        )
        for fc_id, fc in _RAW_FLOWCHARTS.items()
    ]


def get_flowchart(flowchart_id: str) -> Dict[str, FlowchartNodeRecord]:
    """Return the record map for a branch; raises KeyError for unknown ids."""
    return FLOWCHARTS[flowchart_id]


def get_flowchart_info(flowchart_id: str) -> Optional[FlowchartInfo]:
    for info in list_flowcharts():
        if info.id == flowchart_id:
            return info
    return None


def validate_flowchart(
    nodes: Dict[str, FlowchartNodeRecord],
    root: str = FLOWCHART_ROOT,
) -> List[str]:
    """Check the tree invariant of a record map.

    Returns a list of human-readable problems: missing root, child ids
    without a record, edges leading back to the root (cycles), ids
    reachable from more than one parent, and records unreachable from the
    root. An empty list means the map is a tree rooted at ``root``.
    """
    problems: List[str] = []
    if root not in nodes:
        return [f"root '{root}' has no record"]

    parents: Dict[str, str] = {}
    for node_id, record in nodes.items():
        for child in record.children:
            if child not in nodes:
                problems.append(f"'{node_id}' references missing child '{child}'")
                continue
            if child == root:
                problems.append(f"'{node_id}' points back to root '{root}' (cycle)")
                continue
            if child in parents:
                problems.append(f"'{child}' has more than one parent ('{node_id}')")
                continue
            parents[child] = node_id

    reachable = {root}
    stack = [root]
    while stack:
        for child in nodes[stack.pop()].children:
            if child in nodes and child not in reachable:
                reachable.add(child)
                stack.append(child)
    for node_id in nodes:
        if node_id not in reachable:
            problems.append(f"'{node_id}' is unreachable from '{root}'")
    return problems
