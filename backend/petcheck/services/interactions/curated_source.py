"""
Curated rule-based interaction source.

Rules name drugs by pattern: a name fragment, an active ingredient or a
drug class. A drug matches a pattern when its normalized name contains it,
or when the catalog entry it resolves to lists it as a class, contains it
in an active ingredient, or contains it in the generic name.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from petcheck.models.interaction import (
    ConditionInteraction,
    DrugInteraction,
    DrugReference,
    InteractionSource,
    SpeciesInteraction,
)
from petcheck.models.vocabulary import (
    ConcernType,
    EvidenceLevel,
    InteractionType,
    Severity,
    SpeciesCategory,
)
from petcheck.services.catalog.green_book import DrugCatalog, VeterinaryDrug
from petcheck.services.interactions.base_source import InteractionDataSource

logger = logging.getLogger("petcheck.interactions.curated")


@dataclass(frozen=True)
class DrugDrugRule:
    drug1_patterns: tuple[str, ...]
    drug2_patterns: tuple[str, ...]
    severity: Severity
    evidence: EvidenceLevel
    description: str
    clinical_effect: Optional[str] = None
    mechanism: Optional[str] = None
    management: Optional[str] = None
    species_specific: Optional[tuple[SpeciesCategory, ...]] = None


@dataclass(frozen=True)
class SpeciesRule:
    drug_patterns: tuple[str, ...]
    species: SpeciesCategory
    severity: Severity
    type: ConcernType
    description: str
    reason: Optional[str] = None
    management: Optional[str] = None


@dataclass(frozen=True)
class ConditionRule:
    drug_patterns: tuple[str, ...]
    condition: str
    severity: Severity
    type: ConcernType
    description: str
    reason: Optional[str] = None
    management: Optional[str] = None
    species_specific: Optional[tuple[SpeciesCategory, ...]] = None


# ═══════════════════════════════════════════
# DRUG-DRUG RULES
# ═══════════════════════════════════════════

DRUG_INTERACTION_RULES: tuple[DrugDrugRule, ...] = (
    DrugDrugRule(
        ("nsaid",), ("nsaid",), Severity.MAJOR, EvidenceLevel.ESTABLISHED,
        "Concurrent use of multiple NSAIDs significantly increases the risk of gastrointestinal "
        "ulceration, bleeding, and renal toxicity.",
        clinical_effect="Increased risk of GI ulceration, bleeding, and acute kidney injury",
        mechanism="Additive inhibition of prostaglandin synthesis",
        management="Avoid concurrent NSAID use. Allow a washout period of 5-7 days when switching NSAIDs.",
    ),
    DrugDrugRule(
        ("nsaid",), ("corticosteroid",), Severity.MAJOR, EvidenceLevel.ESTABLISHED,
        "Concurrent use of NSAIDs and corticosteroids greatly increases the risk of gastrointestinal "
        "ulceration and bleeding.",
        clinical_effect="Significantly increased risk of GI ulceration and bleeding",
        mechanism="Both classes reduce protective prostaglandins in the GI tract",
        management="Avoid concurrent use if possible. If necessary, use gastroprotective agents and monitor closely.",
    ),
    DrugDrugRule(
        ("carprofen", "meloxicam", "deracoxib", "firocoxib", "nsaid"),
        ("enalapril", "benazepril", "lisinopril"),
        Severity.MODERATE, EvidenceLevel.ESTABLISHED,
        "NSAIDs may reduce the effectiveness of ACE inhibitors and increase the risk of renal impairment.",
        clinical_effect="Reduced antihypertensive effect and potential renal function decline",
        mechanism="NSAIDs inhibit prostaglandin-mediated renal vasodilation",
        management="Monitor renal function and blood pressure. Consider alternative pain management.",
    ),
    DrugDrugRule(
        ("phenobarbital",), ("diazepam", "gabapentin", "trazodone", "sedative"),
        Severity.MODERATE, EvidenceLevel.ESTABLISHED,
        "Combined use may result in enhanced CNS depression.",
        clinical_effect="Excessive sedation, respiratory depression",
        mechanism="Additive CNS depressant effects",
        management="Start with lower doses and titrate carefully. Monitor for excessive sedation.",
    ),
    DrugDrugRule(
        ("metronidazole",), ("phenobarbital",), Severity.MODERATE, EvidenceLevel.THEORETICAL,
        "Phenobarbital may increase metabolism of metronidazole, potentially reducing its efficacy.",
        clinical_effect="Reduced metronidazole levels",
        mechanism="Hepatic enzyme induction by phenobarbital",
        management="Monitor for treatment efficacy. May need higher metronidazole doses.",
    ),
    DrugDrugRule(
        ("enrofloxacin", "marbofloxacin", "orbifloxacin"), ("theophylline", "aminophylline"),
        Severity.MODERATE, EvidenceLevel.ESTABLISHED,
        "Fluoroquinolones can increase theophylline levels, potentially causing toxicity.",
        clinical_effect="Increased theophylline levels and potential toxicity",
        mechanism="Inhibition of theophylline metabolism",
        management="Monitor theophylline levels. Consider dose reduction or alternative antibiotic.",
    ),
    DrugDrugRule(
        ("furosemide",), ("gentamicin", "amikacin", "tobramycin", "aminoglycoside"),
        Severity.MAJOR, EvidenceLevel.ESTABLISHED,
        "Concurrent use increases the risk of ototoxicity and nephrotoxicity.",
        clinical_effect="Enhanced ototoxicity and nephrotoxicity",
        mechanism="Both classes are ototoxic and nephrotoxic",
        management="Avoid concurrent use if possible. Monitor renal function closely.",
    ),
    DrugDrugRule(
        ("tramadol",), ("fluoxetine", "sertraline", "paroxetine", "trazodone"),
        Severity.MODERATE, EvidenceLevel.THEORETICAL,
        "Risk of serotonin syndrome with concurrent serotonergic drugs.",
        clinical_effect="Potential serotonin syndrome",
        mechanism="Tramadol has weak serotonin reuptake inhibition",
        management="Monitor for signs of serotonin syndrome (agitation, hyperthermia, tremor).",
    ),
    DrugDrugRule(
        ("digoxin",), ("furosemide",), Severity.MODERATE, EvidenceLevel.ESTABLISHED,
        "Furosemide-induced hypokalemia can increase digoxin toxicity risk.",
        clinical_effect="Increased risk of digoxin toxicity",
        mechanism="Hypokalemia enhances digoxin binding to Na+/K+-ATPase",
        management="Monitor potassium levels and supplement as needed. Monitor for digoxin toxicity.",
    ),
    DrugDrugRule(
        ("spironolactone",), ("enalapril", "benazepril"), Severity.MODERATE, EvidenceLevel.ESTABLISHED,
        "Risk of hyperkalemia with concurrent use.",
        clinical_effect="Hyperkalemia",
        mechanism="Both drugs can increase potassium retention",
        management="Monitor serum potassium regularly. Adjust doses as needed.",
    ),
)

# ═══════════════════════════════════════════
# SPECIES RULES
# ═══════════════════════════════════════════

SPECIES_RULES: tuple[SpeciesRule, ...] = (
    SpeciesRule(
        ("nsaid", "meloxicam", "carprofen", "ketoprofen"), SpeciesCategory.FELINE,
        Severity.MAJOR, ConcernType.CAUTION,
        "Cats have limited ability to metabolize NSAIDs. Most NSAIDs are not approved for chronic use in cats.",
        reason="Limited glucuronidation capacity leads to prolonged drug half-life",
        management="Use lowest effective dose for shortest duration. Meloxicam is approved only for "
                   "single-dose use in cats in the US.",
    ),
    SpeciesRule(
        ("acetaminophen", "tylenol", "paracetamol"), SpeciesCategory.FELINE,
        Severity.CONTRAINDICATED, ConcernType.CONTRAINDICATED,
        "Acetaminophen is HIGHLY TOXIC to cats and should NEVER be administered.",
        reason="Cats lack glucuronyl transferase needed to metabolize acetaminophen",
        management="NEVER administer acetaminophen to cats. Seek emergency care if ingestion suspected.",
    ),
    SpeciesRule(
        ("xylitol",), SpeciesCategory.CANINE, Severity.CONTRAINDICATED, ConcernType.CONTRAINDICATED,
        "Xylitol is extremely toxic to dogs, causing hypoglycemia and liver failure.",
        reason="Causes massive insulin release in dogs",
        management="Never give products containing xylitol to dogs.",
    ),
    SpeciesRule(
        ("ivermectin", "moxidectin", "milbemycin"), SpeciesCategory.CANINE,
        Severity.MAJOR, ConcernType.CAUTION,
        "Certain herding breeds (Collies, Shelties, Australian Shepherds) with MDR1 mutation are "
        "sensitive to high-dose ivermectin.",
        reason="MDR1 gene mutation allows drugs to cross blood-brain barrier",
        management="Test for MDR1 mutation in herding breeds. Use lower doses or alternative preventatives.",
    ),
    SpeciesRule(
        ("thiopental", "barbiturate"), SpeciesCategory.CANINE, Severity.MAJOR, ConcernType.CAUTION,
        "Sighthounds (Greyhounds, Whippets) have prolonged recovery from barbiturate anesthesia.",
        reason="Low body fat and altered hepatic metabolism",
        management="Use alternative anesthetic agents. If barbiturates required, reduce dose.",
    ),
    SpeciesRule(
        ("phenylbutazone", "bute"), SpeciesCategory.EQUINE,
        Severity.MODERATE, ConcernType.MONITORING_REQUIRED,
        "Phenylbutazone can cause serious GI ulceration and right dorsal colitis in horses.",
        reason="Horses are particularly susceptible to NSAID-induced GI toxicity",
        management="Use lowest effective dose. Provide gastroprotection. Monitor for signs of GI distress.",
    ),
)

# ═══════════════════════════════════════════
# CONDITION RULES
# ═══════════════════════════════════════════

CONDITION_RULES: tuple[ConditionRule, ...] = (
    ConditionRule(
        ("nsaid", "carprofen", "meloxicam", "deracoxib"), "kidney disease",
        Severity.MAJOR, ConcernType.CONTRAINDICATED,
        "NSAIDs are contraindicated or require extreme caution in patients with kidney disease.",
        reason="NSAIDs reduce renal prostaglandin-mediated blood flow",
        management="Avoid NSAIDs in renal patients. Consider alternative analgesics.",
    ),
    ConditionRule(
        ("phenobarbital",), "liver disease", Severity.MAJOR, ConcernType.CAUTION,
        "Phenobarbital can worsen liver disease and is primarily metabolized by the liver.",
        reason="Hepatotoxic potential and reduced metabolism",
        management="Consider alternative anticonvulsants (levetiracetam). Monitor liver values closely.",
    ),
    ConditionRule(
        ("nsaid",), "heart disease", Severity.MODERATE, ConcernType.CAUTION,
        "NSAIDs may exacerbate fluid retention and reduce efficacy of diuretics in cardiac patients.",
        reason="Prostaglandin inhibition affects renal sodium and water handling",
        management="Use with caution. Monitor for fluid retention and worsening cardiac signs.",
    ),
    ConditionRule(
        ("corticosteroid", "prednisone", "dexamethasone", "prednisolone"), "diabetes",
        Severity.MAJOR, ConcernType.CAUTION,
        "Corticosteroids cause hyperglycemia and can destabilize diabetic patients.",
        reason="Corticosteroids induce insulin resistance and gluconeogenesis",
        management="Avoid if possible. If necessary, monitor glucose closely and adjust insulin.",
    ),
    ConditionRule(
        ("acepromazine",), "seizure disorder", Severity.MAJOR, ConcernType.CONTRAINDICATED,
        "Acepromazine may lower seizure threshold and should be avoided in epileptic patients.",
        reason="Reduces seizure threshold",
        management="Use alternative sedatives (trazodone, gabapentin).",
    ),
    ConditionRule(
        ("nsaid", "corticosteroid"), "gi ulcer", Severity.CONTRAINDICATED, ConcernType.CONTRAINDICATED,
        "NSAIDs and corticosteroids can worsen existing GI ulceration.",
        reason="Both reduce protective GI mucosa",
        management="Avoid in patients with active GI ulceration. Use gastroprotective therapy.",
    ),
)


def matches_drug_pattern(normalized: str, drug: Optional[VeterinaryDrug], patterns) -> bool:
    """True when the drug matches any pattern by name, class, ingredient or generic name."""
    for pattern in patterns:
        p = pattern.lower()
        if p in normalized:
            return True
        if drug is None:
            continue
        if any(c.value == p for c in drug.drug_classes):
            return True
        if any(p in i.name.lower() for i in drug.active_ingredients):
            return True
        if drug.generic_name and p in drug.generic_name.lower():
            return True
    return False


class CuratedInteractionSource(InteractionDataSource):
    """Interaction lookups against the curated rule tables."""

    def __init__(self, catalog: Optional[DrugCatalog] = None,
                 drug_rules=DRUG_INTERACTION_RULES,
                 species_rules=SPECIES_RULES,
                 condition_rules=CONDITION_RULES):
        self.catalog = catalog or DrugCatalog()
        self.drug_rules = drug_rules
        self.species_rules = species_rules
        self.condition_rules = condition_rules

    @property
    def source_name(self) -> str:
        return "PetCheck Curated Interaction Rules"

    def _resolve(self, name: str) -> Optional[VeterinaryDrug]:
        _, drug, _ = self.catalog.resolve_drug_name(name)
        return drug

    @staticmethod
    def _reference(name: str, drug: Optional[VeterinaryDrug]) -> DrugReference:
        if drug is None:
            return DrugReference(name=name)
        return DrugReference(
            name=name,
            drug_id=drug.id,
            active_ingredient=drug.active_ingredients[0].name if drug.active_ingredients else None,
            drug_class=drug.drug_classes[0].value if drug.drug_classes else None,
        )

    def lookup_drug_drug(self, name_a: str, name_b: str) -> list[DrugInteraction]:
        drug_a, drug_b = self._resolve(name_a), self._resolve(name_b)
        now = datetime.now(timezone.utc)
        results = []
        for rule in self.drug_rules:
            if (matches_drug_pattern(name_a, drug_a, rule.drug1_patterns)
                    and matches_drug_pattern(name_b, drug_b, rule.drug2_patterns)):
                first, second = (name_a, drug_a), (name_b, drug_b)
            elif (matches_drug_pattern(name_b, drug_b, rule.drug1_patterns)
                    and matches_drug_pattern(name_a, drug_a, rule.drug2_patterns)):
                first, second = (name_b, drug_b), (name_a, drug_a)
            else:
                continue
            results.append(DrugInteraction(
                id=str(uuid.uuid4()),
                drug1=self._reference(*first),
                drug2=self._reference(*second),
                severity=rule.severity,
                type=InteractionType.DRUG_DRUG,
                evidence=rule.evidence,
                description=rule.description,
                clinical_effect=rule.clinical_effect,
                mechanism=rule.mechanism,
                management=rule.management,
                species_specific=rule.species_specific,
                sources=(InteractionSource(type="curated", reference="PetCheck Interaction Database"),),
                last_updated=now,
            ))
        return results

    def lookup_species(self, name: str, species: SpeciesCategory) -> list[SpeciesInteraction]:
        drug = self._resolve(name)
        now = datetime.now(timezone.utc)
        results = []
        for rule in self.species_rules:
            if rule.species != species or not matches_drug_pattern(name, drug, rule.drug_patterns):
                continue
            results.append(SpeciesInteraction(
                id=str(uuid.uuid4()),
                drug_name=name,
                drug_id=drug.id if drug else None,
                active_ingredient=drug.active_ingredients[0].name if drug and drug.active_ingredients else None,
                species=species,
                severity=rule.severity,
                type=rule.type,
                description=rule.description,
                reason=rule.reason,
                management=rule.management,
                sources=(InteractionSource(type="curated", reference="PetCheck Species Database"),),
                last_updated=now,
            ))
        return results

    def lookup_condition(self, name: str, condition: str,
                         species: Optional[SpeciesCategory] = None) -> list[ConditionInteraction]:
        wanted = condition.strip().lower()
        if not wanted:
            return []
        drug = self._resolve(name)
        now = datetime.now(timezone.utc)
        results = []
        for rule in self.condition_rules:
            rule_condition = rule.condition.lower()
            if wanted not in rule_condition and rule_condition not in wanted:
                continue
            if not matches_drug_pattern(name, drug, rule.drug_patterns):
                continue
            if rule.species_specific and species and species not in rule.species_specific:
                continue
            results.append(ConditionInteraction(
                id=str(uuid.uuid4()),
                drug_name=name,
                drug_id=drug.id if drug else None,
                condition=rule.condition,
                severity=rule.severity,
                type=rule.type,
                description=rule.description,
                reason=rule.reason,
                management=rule.management,
                species_specific=rule.species_specific,
                sources=(InteractionSource(type="curated", reference="PetCheck Condition Database"),),
                last_updated=now,
            ))
        return results
