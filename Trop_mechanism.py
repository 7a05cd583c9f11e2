##########################################################################################
#                                                                                        #
#    Species registry, concentration presets and the reaction table for the             #
#    tropospheric methane / NOx / HOx mechanism. The table is turned into the            #
#    dictionaries, index arrays and sparse loss/gain matrix used by the RHS              #
#                                                                                        #
#                                                                                        #
#    Copyright (C) 2018  David Topping : david.topping@manchester.ac.uk                  #
#                                      : davetopp80@gmail.com                            #
#    Personal website: davetoppingsci.com                                                #
#                                                                                        #
#    All Rights Reserved.                                                                #
#    This file is part of TropBox.                                                       #
#                                                                                        #
#    TropBox is free software: you can redistribute it and/or modify it under            #
#    the terms of the GNU General Public License as published by the Free Software       #
#    Foundation, either version 3 of the License, or (at your option) any later          #
#    version.                                                                            #
#                                                                                        #
#    TropBox is distributed in the hope that it will be useful, but WITHOUT              #
#    ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS       #
#    FOR A PARTICULAR PURPOSE.  See the GNU General Public License for more              #
#    details.                                                                            #
#                                                                                        #
#    You should have received a copy of the GNU General Public License along with        #
#    TropBox.  If not, see <http://www.gnu.org/licenses/>.                               #
#                                                                                        #
##########################################################################################

# The mechanism is small and fixed, so rather than parsing a KPP equation file the
# reactions are written out below as a table. Each row holds:
#   name         - used to look up the rate coefficient in Trop_constants
#   reactants    - species multiplied together in the rate law [repeat a name for 2nd order]
#   stoichiometry- signed change of each tracked species per reaction event
#   folded_into  - for reactions of untracked fast intermediates, the reaction they are
#                  lumped into. These have a rate coefficient but no RHS contribution.

import collections
import logging
import numpy
from scipy.sparse import lil_matrix

logger = logging.getLogger(__name__)

# Species in declaration order. This order defines the array layout used by the solver
# and the column order of any exported time series
SPECIES=collections.OrderedDict()
SPECIES['CH4']={'name':'CH₄','color':'#3b82f6','initial':1800.0}
SPECIES['CO']={'name':'CO','color':'#f59e0b','initial':100.0}
SPECIES['CO2']={'name':'CO₂','color':'#10b981','initial':400000.0} # ppm in ppb units
SPECIES['OH']={'name':'OH','color':'#ec4899','initial':0.1}
SPECIES['HO2']={'name':'HO₂','color':'#06b6d4','initial':10.0}
SPECIES['O3']={'name':'O₃','color':'#8b5cf6','initial':40.0}
SPECIES['NO']={'name':'NO','color':'#ef4444','initial':0.5}
SPECIES['NO2']={'name':'NO₂','color':'#f97316','initial':0.5}
SPECIES['CH3O2']={'name':'CH₃O₂','color':'#84cc16','initial':0.01}
SPECIES['CH2O']={'name':'CH₂O','color':'#14b8a6','initial':1.0}

# Initial concentrations [ppb] for each named scenario
PRESETS={
    'background':{'CH4':1800.0, 'CO':100.0, 'CO2':400000.0, 'OH':0.1, 'HO2':10.0,
                  'O3':40.0, 'NO':0.5, 'NO2':0.5, 'CH3O2':0.01, 'CH2O':1.0},
    'polluted':{'CH4':2000.0, 'CO':500.0, 'CO2':450000.0, 'OH':0.05, 'HO2':20.0,
                'O3':80.0, 'NO':5.0, 'NO2':10.0, 'CH3O2':0.1, 'CH2O':5.0},
    'clean':{'CH4':1750.0, 'CO':50.0, 'CO2':400000.0, 'OH':0.2, 'HO2':5.0,
             'O3':30.0, 'NO':0.1, 'NO2':0.1, 'CH3O2':0.005, 'CH2O':0.5}
    }

# Fraction of O(1D) that reacts with water vapour to give 2OH rather than being quenched
O1D_H2O_EFFICIENCY=0.2

# Species receiving a constant emission source [ppb/day]
EMITTED_SPECIES=('CH4','CO')

REACTIONS=[
    # OH + CH4 [+O2] = CH3O2 + H2O
    ('CH4_OH', ('CH4','OH'), {'CH4':-1.0, 'OH':-1.0, 'CH3O2':1.0}, None),
    # CH3 + O2 = CH3O2, instantaneous so folded into CH4_OH
    ('CH3_O2', ('CH3','O2'), {}, 'CH4_OH'),
    # CH3O2 + NO = CH2O + NO2 + HO2
    ('CH3O2_NO', ('CH3O2','NO'), {'CH3O2':-1.0, 'NO':-1.0, 'CH2O':1.0, 'NO2':1.0, 'HO2':1.0}, None),
    # CH2O + OH = CO + H2O + HO2
    ('CH2O_OH', ('CH2O','OH'), {'CH2O':-1.0, 'OH':-1.0, 'CO':1.0, 'HO2':1.0}, None),
    # CH2O + hv = CO + H2
    ('CH2O_photolysis', ('CH2O',), {'CH2O':-1.0, 'CO':1.0}, None),
    # CO + OH = CO2 + H
    ('CO_OH', ('CO','OH'), {'CO':-1.0, 'OH':-1.0, 'CO2':1.0}, None),
    # NO + O3 = NO2 + O2
    ('NO_O3', ('NO','O3'), {'NO':-1.0, 'O3':-1.0, 'NO2':1.0}, None),
    # NO2 + hv = NO + O, with O + O2 + M = O3 taken as instantaneous
    ('NO2_photolysis', ('NO2',), {'NO2':-1.0, 'NO':1.0, 'O3':1.0}, None),
    # NO2 + OH = HNO3 [HNO3 not tracked]
    ('NO2_OH', ('NO2','OH'), {'NO2':-1.0, 'OH':-1.0}, None),
    # HO2 + NO = OH + NO2
    ('HO2_NO', ('HO2','NO'), {'HO2':-1.0, 'NO':-1.0, 'OH':1.0, 'NO2':1.0}, None),
    # O + O2 + M = O3 + M
    ('O_O2_M', ('O','O2','M'), {}, 'NO2_photolysis'),
    # O3 + hv = O(1D) + O2, then O(1D) + H2O = 2OH for the reacting fraction
    ('O3_photolysis', ('O3',), {'O3':-1.0, 'OH':2.0*O1D_H2O_EFFICIENCY}, None),
    # O(1D) + H2O = 2OH
    ('O1D_H2O', ('O1D','H2O'), {}, 'O3_photolysis'),
    # OH + HO2 = H2O + O2
    ('OH_HO2', ('OH','HO2'), {'OH':-1.0, 'HO2':-1.0}, None),
    # HO2 + HO2 = H2O2 + O2, lumped termination removing one HO2 per event
    ('HO2_HO2', ('HO2','HO2'), {'HO2':-1.0}, None),
    ]

REACTION_NAMES=[row[0] for row in REACTIONS]

def extract_mechanism():

    """ This function converts the reaction table into the dictionaries used to build the RHS

    outputs:
    • output_dict - dictionary holding:
        'species_dict'         - array index -> species
        'species_dict2array'   - species -> array index
        'reaction_dict'        - equation index -> reaction name [active reactions only]
        'rate_dict_reactants'  - equation index -> {reactant step: species}
        'loss_dict'            - species -> {equation index: stoichiometry}
        'gain_dict'            - species -> {equation index: stoichiometry}
        'folded_dict'          - folded reaction name -> parent reaction name
        'max_equations'        - number of active reactions
    """

    species_dict=collections.OrderedDict()
    species_dict2array=collections.OrderedDict()
    for species_step, species in enumerate(SPECIES.keys()):
        species_dict[species_step]=species # useful for checking all species
        species_dict2array[species]=species_step # useful for converting a dict to array

    reaction_dict=collections.OrderedDict()
    rate_dict_reactants=collections.defaultdict(collections.OrderedDict)
    loss_dict=collections.defaultdict(collections.OrderedDict)
    gain_dict=collections.defaultdict(collections.OrderedDict)
    folded_dict=collections.OrderedDict()

    equation_step=0
    for name, reactants, stoichiometry, folded_into in REACTIONS:
        if folded_into is not None:
            folded_dict[name]=folded_into
            continue
        reaction_dict[equation_step]=name
        for reactant_step, reactant in enumerate(reactants):
            assert reactant in species_dict2array, "untracked reactant %s in %s" % (reactant, name)
            rate_dict_reactants[equation_step][reactant_step]=reactant
        for species, stoich in stoichiometry.items():
            assert species in species_dict2array, "untracked species %s in %s" % (species, name)
            if stoich < 0.0:
                loss_dict[species][equation_step]=-stoich
            elif stoich > 0.0:
                gain_dict[species][equation_step]=stoich
        equation_step+=1

    logger.debug("Mechanism holds %d species, %d active and %d folded reactions",
                 len(species_dict), equation_step, len(folded_dict))

    output_dict=dict()
    output_dict['species_dict']=species_dict
    output_dict['species_dict2array']=species_dict2array
    output_dict['reaction_dict']=reaction_dict
    output_dict['rate_dict_reactants']=rate_dict_reactants
    output_dict['loss_dict']=loss_dict
    output_dict['gain_dict']=gain_dict
    output_dict['folded_dict']=folded_dict
    output_dict['max_equations']=equation_step

    return output_dict

def build_reactants_indices(equations,species_dict2array,rate_dict_reactants):

    # Padded array of reactant indices for each equation. Unused slots hold -1 and are
    # skipped by the reactant product kernel in ODE_solver
    max_reactants=max(len(rate_dict_reactants[equation_step]) for equation_step in range(equations))
    reactants_indices=numpy.full((equations,max_reactants),-1,dtype=numpy.int64)
    for equation_step in range(equations):
        for reactant_step, reactant in rate_dict_reactants[equation_step].items():
            reactants_indices[equation_step,reactant_step]=species_dict2array[reactant]

    return reactants_indices

def build_loss_gain_matrix(equations,num_species,loss_dict,gain_dict,species_dict2array):

    #Here we create a sparse matrix for use in the loss_gain calculations
    #dydt is then the product of this matrix with the vector of reaction rates
    loss_gain=lil_matrix((num_species, equations), )

    for species, species_step in species_dict2array.items():
        for equation_step, stoich in loss_dict[species].items():
            loss_gain[species_step,equation_step]-=stoich
        for equation_step, stoich in gain_dict[species].items():
            loss_gain[species_step,equation_step]+=stoich

    #Now convert matrix type for use in numerical operations later
    return loss_gain.tocsr()

def build_mechanism():

    # Convenience wrapper collecting everything the solver needs in one dictionary
    outputdict=extract_mechanism()
    equations=outputdict['max_equations']
    species_dict2array=outputdict['species_dict2array']
    num_species=len(species_dict2array)

    emission_indices=numpy.array([species_dict2array[species] for species in EMITTED_SPECIES],dtype=numpy.int64)

    outputdict['num_species']=num_species
    outputdict['reaction_names']=[outputdict['reaction_dict'][step] for step in range(equations)]
    outputdict['reactants_indices']=build_reactants_indices(equations,species_dict2array,
                                                            outputdict['rate_dict_reactants'])
    outputdict['loss_gain']=build_loss_gain_matrix(equations,num_species,outputdict['loss_dict'],
                                                   outputdict['gain_dict'],species_dict2array)
    outputdict['emission_indices']=emission_indices

    return outputdict

def initial_concentrations(preset='background'):

    # Unknown presets fall back to the background scenario
    if preset not in PRESETS:
        logger.warning("Unknown preset %r, using 'background'", preset)
        preset='background'
    initial_values=PRESETS[preset]
    return collections.OrderedDict((species, float(initial_values[species])) for species in SPECIES)

def concentrations_to_array(concentrations):

    for species in SPECIES:
        assert species in concentrations, "concentration missing for species %s" % species
    return numpy.array([concentrations[species] for species in SPECIES],dtype=numpy.float64)

def array_to_concentrations(y):

    assert len(y)==len(SPECIES), "expected %d species, got %d" % (len(SPECIES), len(y))
    return collections.OrderedDict((species, float(y[step])) for step, species in enumerate(SPECIES))
