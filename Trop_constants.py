##########################################################################################
#                                                                                        #
#    Rate coefficients for the tropospheric mechanism. Thermal reactions use             #
#    Arrhenius expressions, photolysis rates use a simple cos(sza)**n                    #
#    parameterisation and the O + O2 + M reaction scales with air number density         #
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

import logging
import numpy

logger = logging.getLogger(__name__)

R_gas=8.314 #Ideal gas constant [J mol-1 K-1]
kb=1.381E-23 #Boltzmanns constant [J K-1]

# Photolysis parameters in the form J = J0*cos(sza)**n
#            J0       n
J_PARAMS={
    'NO2_photolysis':(8.0E-03, 1.0),
    'O3_photolysis':(3.0E-05, 1.5), # O3 + hv = O(1D) + O2
    'CH2O_photolysis':(5.0E-05, 1.2),
    }

def arrhenius(A, Ea, temp):
    # k = A*exp(-Ea/RT). A negative Ea gives a rate that falls with temperature
    return A*numpy.exp(-Ea/(R_gas*temp))

def photolysis(reaction_name, sza):

    """ Photolysis rate [s-1] for a given solar zenith angle

    inputs:
    • reaction_name - key into J_PARAMS
    • sza - solar zenith angle [degrees]. 0 is overhead sun, 90 the horizon
    outputs:
    • J - 0.0 at and beyond the horizon, J0*cos(sza)**n otherwise
    """

    params=J_PARAMS.get(reaction_name)
    if params is None:
        return 0.0
    # cos(pi/2) is not exactly 0 in floating point, so night is tested on the angle itself
    if sza >= 90.0:
        return 0.0
    j0, n = params
    cosx=max(0.0, numpy.cos(numpy.radians(sza)))
    return j0*cosx**n

def air_density(temp, pressure):
    # Number density of air [molecules/cc] from the ideal gas law, pressure in hPa
    return pressure*100.0/(kb*temp)*1.0E-6

def co_oh_pressure_factor(pressure):
    # Empirical linear pressure correction applied to CO + OH only
    return 1.0+0.6*pressure/1013.0

def rate_constants(temp, pressure, sza):

    # calculates all rate constants for the current environment
    # return a dictionary containing all relevant variables
    M=air_density(temp, pressure)

    rate_constants_dict=dict()

    # OH + CH4 = CH3 + H2O
    rate_constants_dict['CH4_OH']=arrhenius(2.45E-12, -1775.0, temp)
    # CH3 + O2 = CH3O2
    rate_constants_dict['CH3_O2']=1.0E-12
    # CH3O2 + NO = CH2O + NO2 + HO2
    rate_constants_dict['CH3O2_NO']=2.8E-12
    # CH2O + OH = CO + H2O + HO2
    rate_constants_dict['CH2O_OH']=5.5E-12
    # CH2O + hv = CO + H2
    rate_constants_dict['CH2O_photolysis']=photolysis('CH2O_photolysis', sza)
    # CO + OH = CO2 + H
    rate_constants_dict['CO_OH']=arrhenius(1.5E-13, 0.0, temp)*co_oh_pressure_factor(pressure)
    # NO + O3 = NO2 + O2
    rate_constants_dict['NO_O3']=arrhenius(3.0E-12, 1500.0, temp)
    # NO2 + hv = NO + O
    rate_constants_dict['NO2_photolysis']=photolysis('NO2_photolysis', sza)
    # NO2 + OH = HNO3
    rate_constants_dict['NO2_OH']=arrhenius(1.2E-11, 0.0, temp)
    # HO2 + NO = OH + NO2
    rate_constants_dict['HO2_NO']=arrhenius(3.5E-12, -250.0, temp)
    # O + O2 + M = O3 + M
    rate_constants_dict['O_O2_M']=6.0E-34*(temp/300.0)**(-2.4)*M
    # O3 + hv = O(1D) + O2
    rate_constants_dict['O3_photolysis']=photolysis('O3_photolysis', sza)
    # O(1D) + H2O = 2OH
    rate_constants_dict['O1D_H2O']=1.63E-10
    # OH + HO2 = H2O + O2
    rate_constants_dict['OH_HO2']=4.8E-11
    # HO2 + HO2 = H2O2 + O2
    rate_constants_dict['HO2_HO2']=2.3E-13

    return rate_constants_dict

def rate_constant(reaction_name, temp, pressure, sza):

    """ Rate constant for a single named reaction

    Unknown names give 0.0 rather than an error. The reaction set is closed, so this
    only happens through a typo in calling code and is logged as a warning.
    """

    rate_constants_dict=rate_constants(temp, pressure, sza)
    if reaction_name not in rate_constants_dict:
        logger.warning("No rate coefficient defined for reaction %r, using 0.0", reaction_name)
        return 0.0
    return float(rate_constants_dict[reaction_name])

def evaluate_rates(reaction_names, temp, pressure, sza):

    # Rate coefficient for each equation, in equation order, for use in the ODE solver
    rate_constants_dict=rate_constants(temp, pressure, sza)
    rates=numpy.zeros((len(reaction_names)),)
    for equation_step, name in enumerate(reaction_names):
        if name in rate_constants_dict:
            rates[equation_step]=rate_constants_dict[name]
        else:
            logger.warning("No rate coefficient defined for reaction %r, using 0.0", name)
    return rates

def zenith(ttime):

    # Triangular approximation of the diurnal cycle in solar zenith angle [degrees]
    # ttime is simulated time in seconds from local midnight. The angle is 0 at local
    # noon, rises by 7.5 degrees per hour either side and is capped at the horizon
    local_hour=(ttime/3600.0)%24.0
    return min(90.0, abs(12.0-local_hour)*7.5)
